"""
peerlink.services
~~~~~~~~~~~~~~~~~
中继核心：活动计数、房间目录、信令中继与连接出站队列。
"""
