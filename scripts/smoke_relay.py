"""手动冒烟测试：对一个已启动的中继验证 HTTP 限流与聊天限流。

要求: 运行前先启动服务（``peerlink`` 或 ``uvicorn peerlink.main:app --port 3001``）。
"""
import asyncio
import json

import httpx
from websockets.asyncio.client import connect

BASE_URL = "http://127.0.0.1:3001"
WS_URL = "ws://127.0.0.1:3001/ws"


async def check_stats_rate_limit():
    print("=" * 50)
    print(" 验证 /api/stats 限流 (期望: 10/second) ")
    print("=" * 50)

    async with httpx.AsyncClient() as client:
        responses = []
        for _ in range(12):
            try:
                resp = await client.get(f"{BASE_URL}/api/stats")
                responses.append(resp.status_code)
            except httpx.HTTPError as e:
                print(f"请求失败: {e}")

        print(f"状态码返回: {responses}")
        if 429 in responses:
            print("✅ 成功: 触发了 HTTP 429 Too Many Requests 限流！")
        else:
            print("❌ 失败: 没有触发 429 限流，或服务器未启动。")


async def _recv(ws, timeout=2.0):
    return json.loads(await asyncio.wait_for(ws.recv(), timeout=timeout))


async def check_chat_rate_limit():
    print("\n" + "=" * 50)
    print(" 验证聊天限流 (期望: 两条消息间隔至少 1 秒)")
    print("=" * 50)

    try:
        async with connect(WS_URL) as alice, connect(WS_URL) as bob:
            await _recv(alice)
            await _recv(bob)
            for ws in (alice, bob):
                await ws.send(json.dumps({"event": "join", "data": "smoke_room"}))
                await _recv(ws)
            await _recv(alice)  # peer-joined

            print("✅ 已连接。现在快速发送两条消息...")
            for text in ("first message", "second message, too fast"):
                await bob.send(json.dumps({"event": "chat-message", "data": {"text": text}}))

            error_received = False
            for _ in range(3):
                try:
                    frame = await _recv(bob)
                except asyncio.TimeoutError:
                    break
                print(f"   服务器返回: {frame}")
                if frame["event"] == "error" and frame["data"]["type"] == "chat":
                    error_received = True
                    break

            if error_received:
                print("\n✅ 成功: 收到了聊天限流错误事件！")
            else:
                print("\n❌ 失败: 未收到聊天限流错误事件。")
    except OSError as e:
        print(f"WebSocket 遇到了错误，请确认服务已启动: {e}")


async def main():
    print("🟢 开始执行限流防刷验证...\n")
    await check_stats_rate_limit()
    await check_chat_rate_limit()
    print("\n🏁 验证结束。")


if __name__ == "__main__":
    asyncio.run(main())
