"""
peerlink.core
~~~~~~~~~~~~~
配置、日志、异常与输入校验等基础设施。
"""
