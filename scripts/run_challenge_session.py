#!/usr/bin/env python3
"""
Run a challenge session against a running server.

Starts a session with the chosen persona, sends each utterance as a turn,
then prints the generated strategy document.

Usage:
    python scripts/run_challenge_session.py efficiency "Our meeting schedule is a mess"
    python scripts/run_challenge_session.py moonshot "We want to improve our website" \\
        "We will commit to a redesign this week" --base-url http://127.0.0.1:5001
"""

import argparse
import asyncio
import sys

import httpx

DEFAULT_BASE_URL = "http://127.0.0.1:5001"


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run a strategic challenge session")
    parser.add_argument(
        "persona",
        choices=["efficiency", "moonshot", "customer", "investor"],
        help="Challenger persona",
    )
    parser.add_argument("utterances", nargs="+", help="User utterances, one per turn")
    parser.add_argument("--base-url", default=DEFAULT_BASE_URL, help="Server base URL")
    parser.add_argument("--name", default="User", help="User name")
    parser.add_argument("--role", default="Founder", help="User role")
    parser.add_argument("--company", default="Your Company", help="Organization name")
    parser.add_argument("--document-type", default=None, help="Override the persona's document type")
    parser.add_argument(
        "--feedback",
        choices=["too_intense", "not_challenging_enough"],
        default=None,
        help="Send intensity feedback after the first turn",
    )
    return parser.parse_args(argv)


async def run(args: argparse.Namespace) -> int:
    async with httpx.AsyncClient(base_url=args.base_url, timeout=60.0) as client:
        response = await client.post(
            "/sessions",
            json={
                "persona": args.persona,
                "user_context": {"name": args.name, "role": args.role},
                "org_context": {"name": args.company},
                "document_type": args.document_type,
            },
        )
        if response.status_code != 201:
            print(f"Failed to start session: {response.status_code} {response.text}")
            return 1

        started = response.json()
        session_id = started["session_id"]
        print(f"Session {session_id} ({started['persona']}, {started['document_type']})")
        print(f"Phase: {started['phase']}  Intensity: {started['intensity']}")
        print()

        try:
            for i, utterance in enumerate(args.utterances, 1):
                response = await client.post(f"/sessions/{session_id}/turns", json={"text": utterance})
                if response.status_code != 200:
                    print(f"Turn {i} failed: {response.status_code} {response.text}")
                    return 1

                turn = response.json()
                print(f"[{i}] You: {utterance}")
                print(f"    Challenger ({turn['emotion']}): {turn['reply']}")
                if turn["phase_changed"]:
                    print(f"    -- {turn['phase_message']}")
                if turn["degraded"]:
                    print(f"    (degraded: {', '.join(turn['degraded_services'])})")

                if i == 1 and args.feedback:
                    fb = await client.post(
                        f"/sessions/{session_id}/feedback", json={"feedback": args.feedback}
                    )
                    print(f"    Intensity now {fb.json()['intensity']}")

            response = await client.post(f"/sessions/{session_id}/document")
            if response.status_code != 200:
                print(f"Document generation failed: {response.status_code} {response.text}")
                return 1

            document = response.json()
            print()
            print(document["content"])
            print()
            print("Recommended actions:")
            for action in document["recommended_actions"]:
                print(f"  - {action}")
        finally:
            await client.delete(f"/sessions/{session_id}")

    return 0


def main() -> None:
    args = parse_args()
    try:
        sys.exit(asyncio.run(run(args)))
    except httpx.ConnectError:
        print(f"Could not connect to {args.base_url}. Is the server running?")
        sys.exit(1)


if __name__ == "__main__":
    main()
