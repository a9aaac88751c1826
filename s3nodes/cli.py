"""Command-line runner for a single download or upload.

Usage:
    s3nodes download --bucket reports --filename 2024/summary.csv -o summary.csv
    s3nodes upload --bucket exports --filename data/output.txt --text "Hello, S3!"

    Or via the module:
    python -m s3nodes ...

Environment variables:
    S3NODES_ACCESS_KEY_ID / AWS_ACCESS_KEY_ID: Access key id (required)
    S3NODES_SECRET_ACCESS_KEY / AWS_SECRET_ACCESS_KEY: Secret access key (required)

The command deploys a one-node flow, delivers one message, prints the
resulting message as JSON and exits non-zero if it carries an error.
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any

from .node import (
    CREDENTIALS_NODE_TYPE,
    DOWNLOAD_NODE_TYPE,
    UPLOAD_NODE_TYPE,
    CredentialsSettings,
    NodeManager,
    NodeRegistry,
)
from .types import DEFAULT_REGION

logger = logging.getLogger(__name__)

CREDENTIALS_ID = "credentials"
NODE_ID = "cli"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="s3nodes",
        description="Download or upload one object with the S3 nodes",
    )
    parser.add_argument(
        "--region",
        default=DEFAULT_REGION,
        help=f"AWS region (default: {DEFAULT_REGION})",
    )
    parser.add_argument(
        "--endpoint-url",
        default=None,
        help="S3-compatible endpoint URL (default: AWS)",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: INFO)",
    )

    commands = parser.add_subparsers(dest="command", required=True)

    download = commands.add_parser("download", help="Download an object")
    download.add_argument("--bucket", required=True)
    download.add_argument("--filename", required=True, help="Object key")
    download.add_argument(
        "-o", "--output", type=Path, help="Write the object to this file"
    )

    upload = commands.add_parser("upload", help="Upload an object")
    upload.add_argument("--bucket", required=True)
    upload.add_argument("--filename", required=True, help="Object key")
    source = upload.add_mutually_exclusive_group(required=True)
    source.add_argument("--file", type=Path, help="Upload the bytes of this file")
    source.add_argument("--text", help="Upload this text as UTF-8")
    source.add_argument("--json", dest="json_value", help="Upload this JSON value")
    upload.add_argument("--content-type", default="", help="Override content type")
    upload.add_argument("--acl", default="", help="Canned ACL (e.g. public-read)")

    return parser


def build_flow(args: argparse.Namespace) -> list[dict[str, Any]]:
    """One credentials node and one operation node.

    The credentials node holds whatever CredentialsSettings finds in the
    environment.
    """
    node: dict[str, Any] = {
        "id": NODE_ID,
        "aws": CREDENTIALS_ID,
        "region": args.region,
        "endpoint_url": args.endpoint_url,
    }
    if args.command == "download":
        node["type"] = DOWNLOAD_NODE_TYPE
    else:
        node["type"] = UPLOAD_NODE_TYPE
        node["content_type"] = args.content_type
        node["acl"] = args.acl

    creds = {"id": CREDENTIALS_ID, "type": CREDENTIALS_NODE_TYPE}
    creds.update(CredentialsSettings().to_record())
    return [creds, node]


def build_message(args: argparse.Namespace) -> dict[str, Any]:
    msg: dict[str, Any] = {"bucket": args.bucket, "filename": args.filename}
    if args.command == "upload":
        if args.file is not None:
            msg["payload"] = args.file.read_bytes()
        elif args.text is not None:
            msg["payload"] = args.text
        else:
            msg["payload"] = json.loads(args.json_value)
    return msg


async def run_once(
    args: argparse.Namespace, registry: NodeRegistry | None = None
) -> dict[str, Any] | None:
    """Deploy, deliver one message and return the emitted message, if any."""
    manager = NodeManager(registry)
    try:
        await manager.deploy(build_flow(args))
        manager.receive(NODE_ID, build_message(args))
        await manager.drain()
    finally:
        await manager.close()

    outputs = manager.outputs.get(NODE_ID) or []
    return outputs[0] if outputs else None


def describe(msg: dict[str, Any]) -> dict[str, Any]:
    """JSON-safe view of a result message."""
    view: dict[str, Any] = {}
    for key, value in msg.items():
        if isinstance(value, (bytes, bytearray)):
            view[key] = {"bytes": len(value)}
        elif isinstance(value, BaseException):
            view[key] = f"{type(value).__name__}: {value}"
        else:
            view[key] = value
    return view


def main(argv: list[str] | None = None) -> None:
    """Run one download or upload."""
    args = build_parser().parse_args(argv)

    # Configure logging
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        stream=sys.stderr,
    )

    # Suppress botocore request logging
    for name in ("botocore", "aiobotocore", "aioboto3", "urllib3"):
        logging.getLogger(name).setLevel(logging.WARNING)

    try:
        msg = asyncio.run(run_once(args))
    except KeyboardInterrupt:
        logger.info("Interrupted")
        sys.exit(1)
    except Exception as e:
        logger.error(f"Run failed: {e}")
        sys.exit(1)

    if msg is None:
        logger.error("No message produced")
        sys.exit(1)

    payload = msg.get("payload")
    if args.command == "download" and args.output is not None and payload is not None:
        args.output.write_bytes(payload)
        logger.info(f"Wrote {len(payload)} bytes to {args.output}")

    print(json.dumps(describe(msg), indent=2, default=str))

    if msg.get("error") is not None:
        sys.exit(1)


if __name__ == "__main__":
    main()
