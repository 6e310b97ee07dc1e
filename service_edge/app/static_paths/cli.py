"""
Build pipeline hook: enumerate static paths and write the rendering manifest.

Run before producing the deployable artifact. Content types whose
enumeration fails are marked for dynamic rendering; the build continues
unless ``--strict`` is given.
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import List, Optional

from shared.config import get_config
from shared.errors import EnumerationFailure
from shared.logging import configure_logging, get_logger

from ..adapters.backend_client import CommerceBackendClient
from .enumerator import StaticPathEnumerator
from .manifest import RenderingManifest
from .models import EnumerationResult


async def build_manifest(
    *,
    backend_url: Optional[str],
    content_types: List[str],
    publishable_key: Optional[str] = None,
    timeout: float = 20.0,
    request_timeout: Optional[float] = None,
    page_size: int = 100,
    with_locales: bool = False,
) -> RenderingManifest:
    """Enumerate static paths for each content type.

    ``timeout`` bounds each content type as a whole; ``request_timeout`` bounds
    one backend request and is capped at ``timeout``.
    """
    logger = get_logger("edge.static_paths.cli")

    if not backend_url:
        logger.error("Backend address not configured; every content type renders dynamically")
        return RenderingManifest.from_results(
            EnumerationResult.failed(EnumerationFailure(name, "backend_url not configured"))
            for name in content_types
        )

    per_request = min(request_timeout, timeout) if request_timeout else timeout
    client = CommerceBackendClient(backend_url, publishable_key=publishable_key, timeout=per_request)
    try:
        enumerator = StaticPathEnumerator(client, page_size=page_size, timeout_seconds=timeout)
        return await enumerator.enumerate_all(content_types, expand_locales=with_locales)
    finally:
        await client.close()


def _parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    config = get_config("edge-build", 0)
    parser = argparse.ArgumentParser(description="Enumerate static paths for pre-rendering.")
    parser.add_argument("--backend-url", default=config.backend_url, help="Commerce backend base URL (EDGE_BACKEND_URL)")
    parser.add_argument("--publishable-key", default=config.publishable_key, help="Publishable API key sent to the backend")
    parser.add_argument(
        "--content-type",
        dest="content_types",
        action="append",
        default=None,
        help="Content type to enumerate (repeatable; defaults to EDGE_ENUMERATION_CONTENT_TYPES)",
    )
    parser.add_argument("--timeout", type=float, default=config.enumeration_timeout_seconds, help="Per content type timeout in seconds")
    parser.add_argument(
        "--request-timeout",
        type=float,
        default=config.enumeration_request_timeout_seconds,
        help="Per backend request timeout in seconds",
    )
    parser.add_argument("--page-size", type=int, default=config.enumeration_page_size, help="Identifiers requested per page")
    parser.add_argument("--with-locales", action="store_true", help="Cross identifiers with the served locale codes")
    parser.add_argument("--output", type=Path, default=config.rendering_manifest_path, help="Where to write the manifest JSON")
    parser.add_argument("--strict", action="store_true", help="Exit non-zero if any content type fell back to dynamic rendering")
    parser.add_argument("--log-level", default=config.log_level, help="Log level")
    args = parser.parse_args(argv)
    if not args.content_types:
        args.content_types = list(config.enumeration_content_types)
    return args


def main(argv: Optional[List[str]] = None) -> int:
    args = _parse_args(argv)
    # stdout carries the manifest JSON
    configure_logging("edge-build", args.log_level, stream=sys.stderr)

    try:
        manifest = asyncio.run(
            build_manifest(
                backend_url=args.backend_url,
                content_types=args.content_types,
                publishable_key=args.publishable_key,
                timeout=args.timeout,
                request_timeout=args.request_timeout,
                page_size=args.page_size,
                with_locales=args.with_locales,
            )
        )
    except KeyboardInterrupt:
        return 130

    print(json.dumps(manifest.to_dict(), indent=2))

    if args.output:
        manifest.write(args.output)

    dynamic = manifest.dynamic_content_types
    if dynamic:
        print(f"[static-paths] dynamic rendering for: {', '.join(dynamic)}", file=sys.stderr)
        if args.strict:
            return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
