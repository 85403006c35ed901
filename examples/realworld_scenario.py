"""End-to-end scenario demonstrating the Python client API against a live server."""

from __future__ import annotations

import asyncio
import os

from rtsp_client import ResponseStatusError, RTSPClient, TransportError

BASE_URL = os.getenv("RTSP_DEMO_URL", "rtsp://localhost:554/stream")
TRANSPORT = os.getenv("RTSP_DEMO_TRANSPORT", "RTP/AVP/TCP;unicast;interleaved=0-1")


def log_section(title: str) -> None:
    print("\n" + "=" * 80)
    print(title)
    print("=" * 80)


def media_controls(sdp: str) -> list[str]:
    controls: list[str] = []
    in_media = False
    for line in sdp.splitlines():
        if line.startswith("m="):
            in_media = True
        elif in_media and line.startswith("a=control:"):
            controls.append(line[len("a=control:") :].strip())
    return controls


async def main() -> None:
    log_section("RTSP Python Client: Real-World Scenario")
    print(f"Connecting to {BASE_URL}")
    log_level = os.getenv("RTSP_CLIENT_LOG", "info")
    client = RTSPClient(log_level=log_level, request_timeout=10.0)
    client.on("connected", lambda c: print(f"→ Connected to {c.get_remote_address()}"))
    client.on("closed", lambda c: print("→ Connection closed"))

    try:
        await client.connect(BASE_URL)
    except TransportError as exc:
        print(f"→ Cannot reach {BASE_URL}: {exc}")
        return

    try:
        log_section("Step 1: OPTIONS")
        options = (await client.options()).raise_for_status()
        print(f"→ Server supports: {', '.join(options.public_methods)}")

        log_section("Step 2: DESCRIBE")
        description = (await client.describe()).raise_for_status()
        controls = media_controls(description.text) or ["*"]
        print(f"→ Media controls: {controls}")

        log_section("Step 3: SETUP")
        for control in controls:
            response = (await client.setup(control, TRANSPORT)).raise_for_status()
            if client.session_id is None and response.session_id:
                client.set_session(response.session_id)
            print(f"→ {control}: session={response.session_id} timeout={response.session_timeout}")

        log_section("Step 4: PLAY / PAUSE")
        (await client.play(range_="npt=0.000-")).raise_for_status()
        print("→ Playing")
        await asyncio.sleep(2)
        (await client.pause()).raise_for_status()
        print("→ Paused")

        log_section("Step 5: TEARDOWN")
        (await client.teardown()).raise_for_status()
        print("→ Session torn down")
    except ResponseStatusError as exc:
        print(f"→ Server refused the request: {exc}")
    finally:
        client.close()


if __name__ == "__main__":
    asyncio.run(main())
