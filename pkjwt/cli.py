"""Command line entry point for the three sample programs."""

import argparse
import asyncio
import json
import sys

import uvicorn

from pkjwt.core.app import create_api_app, create_webapp_app
from pkjwt.core.log import configure_logging
from pkjwt.core.settings import (
    ApiSettings,
    LoggingSettings,
    M2MSettings,
    ProviderSettings,
    WebAppSettings,
)
from pkjwt.crypto.keys import generate_signing_key
from pkjwt.m2m.client import ClientCredentialsClient
from pkjwt.oidc.context import OIDCContext
from pkjwt.oidc.errors import LoginFlowError, MetadataError


def _run_api(_args: argparse.Namespace) -> int:
    settings = ApiSettings()
    uvicorn.run(
        create_api_app(settings=settings), host=settings.host, port=settings.port
    )
    return 0


def _run_webapp(_args: argparse.Namespace) -> int:
    settings = WebAppSettings()
    uvicorn.run(
        create_webapp_app(settings=settings), host=settings.host, port=settings.port
    )
    return 0


async def _call_api(url: str | None) -> int:
    settings = M2MSettings()
    ctx = OIDCContext.from_settings(ProviderSettings(), settings, load_jwks=False)
    try:
        client = ClientCredentialsClient(ctx, settings.get_scope_list())
        resp = await client.get(url or settings.resource_endpoint)
    finally:
        await ctx.aclose()
    print("Response")
    print(f"Status: {resp.status_code} {resp.reason_phrase}")
    print(f"Body: {resp.text}")
    return 0


def _run_m2m(args: argparse.Namespace) -> int:
    try:
        return asyncio.run(_call_api(args.url))
    except (MetadataError, LoginFlowError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1


def _generate_key(args: argparse.Namespace) -> int:
    generated = generate_signing_key(args.key_size)
    print(
        json.dumps(
            {
                "private_jwk": generated.private_jwk,
                "public_jwk": generated.public_jwk.model_dump(),
            },
            indent=2,
        )
    )
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pkjwt",
        description="private_key_jwt OIDC samples: API, web app and m2m client",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("api", help="Run the resource server").set_defaults(func=_run_api)
    sub.add_parser("webapp", help="Run the browser login app").set_defaults(
        func=_run_webapp
    )

    m2m = sub.add_parser("m2m", help="Call the API with client credentials")
    m2m.add_argument("--url", help="Resource URL (default: M2M_RESOURCE_ENDPOINT)")
    m2m.set_defaults(func=_run_m2m)

    genkey = sub.add_parser("genkey", help="Generate a PS256 client signing JWK")
    genkey.add_argument("--key-size", type=int, default=2048)
    genkey.set_defaults(func=_generate_key)
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(LoggingSettings().log_level)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
