"""
peerlink
~~~~~~~~

WebRTC 信令中继服务 —— 房间成员目录 + 同房间信令转发 + 防刷限流。
"""
