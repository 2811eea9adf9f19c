"""
peerlink.api
~~~~~~~~~~~~
WebSocket 信令端点与 HTTP 接口。
"""
