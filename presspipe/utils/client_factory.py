"""Client factory for dependency injection.

This module builds WordPressClient and PublishingPipeline instances from
the CLI context, applying profile, timeout and token settings.
"""

import os
from typing import Optional, Tuple

import typer

from ..auth import BearerToken
from ..client import WordPressClient
from ..config import ENV_TOKEN, Profile
from ..exceptions import AuthenticationError, ConfigError
from ..pipeline import PublishingPipeline
from ..render import OutputFormatter


def resolve_token(token: Optional[str]) -> BearerToken:
    """Pick the bearer token from the option or the environment.

    Raises:
        AuthenticationError: If no usable token is available
    """
    token = token or os.getenv(ENV_TOKEN)
    if not token:
        raise AuthenticationError(f"Authentication required: pass --token or set {ENV_TOKEN}")
    return BearerToken(token)


def get_profile(ctx: typer.Context) -> Profile:
    """Profile selected by the global options.

    Raises:
        ConfigError: If no profile is configured
    """
    profile = ctx.obj.get("profile")
    if profile is None:
        raise ConfigError(
            "No CMS configuration found. Run 'presspipe config init' "
            "or set the PRESSPIPE_API_URL environment variable"
        )

    timeout = ctx.obj.get("timeout")
    if timeout and timeout != profile.timeout:
        profile = profile.model_copy(update={"timeout": timeout})
    return profile


def get_client_and_formatter(
    ctx: typer.Context,
    token: Optional[str] = None,
    require_token: bool = False,
) -> Tuple[WordPressClient, OutputFormatter]:
    """Create a client and the shared output formatter from the CLI context."""
    profile = get_profile(ctx)
    bearer = resolve_token(token) if (token or require_token or os.getenv(ENV_TOKEN)) else None
    client = WordPressClient(profile=profile, token=bearer)
    return client, ctx.obj["output_formatter"]


def get_pipeline_and_formatter(
    ctx: typer.Context,
    token: Optional[str] = None,
) -> Tuple[PublishingPipeline, OutputFormatter]:
    """Create a publishing pipeline for one CLI invocation.

    A missing token is left for the pipeline to report as an
    authentication failure result.
    """
    client, formatter = get_client_and_formatter(ctx, token=token)
    pipeline = PublishingPipeline.from_profile(get_profile(ctx), client=client)
    return pipeline, formatter
