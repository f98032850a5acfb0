#!/usr/bin/env python3
"""
Runway Gen-2 client - Main Entry Point

Usage:
    # Submit a text-to-video job
    python main.py generate --prompt "a cat surfing" --seed 7

    # Submit an image-to-video job with camera motion
    python main.py generate --image https://example.com/cat.png --motion-vector 1 0 0 0 0 0

    # Poll a job once, or keep polling until it finishes
    python main.py poll TASK_ID TEAM_ID --watch 10 --output ./cat.mp4

    # Remaining credits / image upload
    python main.py credits
    python main.py upload https://example.com/cat.png

Credentials and proxies are read from RUNWAY_API_KEYS, RUNWAY_API_KEY,
PROXY_SERVERS and PROXY_API_KEY.
"""

import argparse
import asyncio
import sys
from pathlib import Path
from typing import Optional

from core import configure_logging, get_config
from services.runway import (
    GenerationRequest,
    Pending,
    ProxyEndpoint,
    RunwayClient,
    RunwayError,
    TaskHandle,
    new_runway_client,
    parse_credentials,
)

logger = configure_logging()


def build_client() -> RunwayClient:
    """Create a client from environment configuration."""
    config = get_config()
    for issue in config.validate():
        logger.warning(issue)

    credentials = parse_credentials(config.runway.api_keys)
    pinned = config.runway.pinned_api_key
    if pinned and pinned not in {c.api_key for c in credentials}:
        credentials.extend(parse_credentials([pinned]))

    proxies = [
        ProxyEndpoint(id=f"s{i}", server=server)
        for i, server in enumerate(config.proxy.servers)
    ]
    return new_runway_client(credentials, proxies, api_key=pinned, config=config)


async def generate(args: argparse.Namespace) -> int:
    """Submit a job and print its handle."""
    vector = args.motion_vector or [None] * 6
    request = GenerationRequest(
        prompt=args.prompt,
        image_prompt=args.image,
        width=args.width,
        height=args.height,
        x=vector[0],
        y=vector[1],
        z=vector[2],
        r=vector[3],
        pan_x=vector[4],
        pan_y=vector[5],
        style=args.style,
        upscale=args.upscale,
        interpolate=args.interpolate,
        seed=args.seed,
        motion=args.motion,
    )

    async with build_client() as client:
        result = await client.generate_video(request)

    print(f"Task ID: {result.handle.task_id}")
    print(f"Team ID: {result.handle.team_id}")
    return 0


async def poll(
    task_id: str,
    team_id: str,
    watch: Optional[float] = None,
    output: Optional[str] = None,
) -> int:
    """
    Poll a job, optionally until it leaves the pending state.

    Args:
        task_id: Runway task id
        team_id: Team (user) id returned at submission
        watch: Seconds between polls; poll once when None
        output: Where to write the video once it is ready
    """
    handle = TaskHandle(task_id=task_id, team_id=team_id)

    async with build_client() as client:
        while True:
            result = await client.get_video_by_task(handle)
            if not isinstance(result, Pending):
                break
            logger.info(f"Task {task_id}: {result.status or 'pending'} {result.progress_text or ''}")
            if watch is None:
                print(f"Status: {result.status or 'PENDING'}")
                return 2
            await asyncio.sleep(watch)

    print(f"Video: {result.url}")
    print(f"Size: {result.width}x{result.height}, {result.duration}s @ {result.frame_rate} fps")
    print(f"Remaining credits: {result.remaining_credits}")

    if output:
        path = Path(output)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(result.content)
        logger.info(f"Video saved: {path} ({len(result.content) / 1024 / 1024:.1f} MB)")
    return 0


async def show_credits() -> int:
    async with build_client() as client:
        credits = await client.get_credits()
    print(f"Remaining credits: {credits}")
    return 0


async def upload(image_url: str) -> int:
    async with build_client() as client:
        url = await client.upload_image(image_url)
    print(url)
    return 0


def main():
    parser = argparse.ArgumentParser(
        description="Runway Gen-2 web API client",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    # Generate command
    gen_parser = subparsers.add_parser("generate", help="Submit a Gen-2 job")
    gen_parser.add_argument("--prompt", "-p", help="Text prompt")
    gen_parser.add_argument("--image", "-i", help="Image prompt URL")
    gen_parser.add_argument("--width", type=int, default=1408)
    gen_parser.add_argument("--height", type=int, default=768)
    gen_parser.add_argument(
        "--motion-vector",
        nargs=6,
        type=float,
        metavar=("X", "Y", "Z", "R", "PAN_X", "PAN_Y"),
        help="Camera motion components",
    )
    gen_parser.add_argument("--style", help="Style preset (text-only jobs)")
    gen_parser.add_argument("--seed", type=int, help="Generation seed")
    gen_parser.add_argument("--motion", type=int, help="Motion value shown in the job name")
    gen_parser.add_argument("--upscale", action="store_true")
    gen_parser.add_argument("--interpolate", action="store_true")

    # Poll command
    poll_parser = subparsers.add_parser("poll", help="Poll a Gen-2 job")
    poll_parser.add_argument("task_id", help="Task ID")
    poll_parser.add_argument("team_id", help="Team ID")
    poll_parser.add_argument(
        "--watch", "-w", type=float, help="Keep polling every N seconds until done"
    )
    poll_parser.add_argument("--output", "-o", help="Save the finished video here")

    # Credits command
    subparsers.add_parser("credits", help="Show remaining GPU credits")

    # Upload command
    upload_parser = subparsers.add_parser("upload", help="Upload an image to Runway")
    upload_parser.add_argument("image_url", help="Public image URL")

    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    if args.command == "generate" and not (args.prompt or args.image):
        parser.error("generate needs --prompt or --image")

    try:
        if args.command == "generate":
            code = asyncio.run(generate(args))
        elif args.command == "poll":
            code = asyncio.run(poll(args.task_id, args.team_id, args.watch, args.output))
        elif args.command == "credits":
            code = asyncio.run(show_credits())
        else:
            code = asyncio.run(upload(args.image_url))
    except (RunwayError, ValueError) as e:
        logger.error(f"{type(e).__name__}: {e}")
        sys.exit(1)

    sys.exit(code)


if __name__ == "__main__":
    main()
