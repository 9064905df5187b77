"""CLI provider runtime resolution helpers.

This module isolates API-key prompting, runtime source assembly,
and secure API-key persistence from the command wiring layer.
"""

from __future__ import annotations

from typing import Callable, Mapping, Protocol

import typer

from .config import RuntimeConfigSources, StoryvoiceConfig
from .credentials import create_credential_store
from .errors import PipelineStageError
from .parsing import normalize_optional_string

KEYLESS_PROVIDERS = frozenset({"offline"})


class CredentialStoreProtocol(Protocol):
    """Protocol for secure credential store operations used by CLI runtime resolution."""

    def get_api_key(self, provider_id: str) -> str | None:
        """Return the stored API key for a provider, if any."""

    def set_api_key(self, provider_id: str, api_key: str) -> None:
        """Persist an API key for a provider."""


def _collect_cli_values(**values: str | None) -> dict[str, str]:
    """Return the non-blank CLI values keyed by runtime field name."""

    collected: dict[str, str] = {}
    for key, value in values.items():
        normalized = normalize_optional_string(value)
        if normalized is not None:
            collected[key] = normalized
    return collected


def _prompt_api_key(provider_id: str) -> str | None:
    """Prompt for an API key with hidden input; blank input skips."""

    return normalize_optional_string(
        typer.prompt(
            f"{provider_id} API key (hidden; leave blank to skip)",
            default="",
            hide_input=True,
            show_default=False,
        )
    )


def resolve_provider_runtime_sources(
    config: StoryvoiceConfig,
    *,
    provider_tts: str | None,
    model_tts: str | None,
    narrator_voice: str | None,
    api_key: str | None,
    prompt_api_key: bool,
    store_api_key: bool,
    env: Mapping[str, str],
    credential_store_factory: Callable[[], CredentialStoreProtocol] = create_credential_store,
) -> RuntimeConfigSources:
    """Assemble CLI, secure-storage, and env sources for provider resolution.

    Secure storage is consulted only for providers that need an API key, so
    offline runs never touch the OS keyring.
    """

    cli_values = _collect_cli_values(
        provider_tts=provider_tts,
        model_tts=model_tts,
        narrator_voice=narrator_voice,
        api_key=api_key,
    )
    provider_id = config.resolved_provider_runtime(
        RuntimeConfigSources(cli=cli_values, env=env)
    ).tts_provider
    if provider_id in KEYLESS_PROVIDERS:
        return RuntimeConfigSources(cli=cli_values, env=env)

    api_key_entered_in_run = "api_key" in cli_values
    if prompt_api_key and not api_key_entered_in_run:
        prompted = _prompt_api_key(provider_id)
        if prompted is not None:
            cli_values["api_key"] = prompted
            api_key_entered_in_run = True

    credential_store = credential_store_factory()
    secure_values: dict[str, str] = {}
    stored_api_key = credential_store.get_api_key(provider_id)
    if stored_api_key is not None:
        secure_values["api_key"] = stored_api_key

    if api_key_entered_in_run and store_api_key:
        try:
            credential_store.set_api_key(provider_id, cli_values["api_key"])
        except Exception as exc:
            raise PipelineStageError(
                stage="credentials",
                detail=f"Failed to store API key securely: {exc}",
                hint=(
                    "Install and configure a keyring backend, or rerun with "
                    "`--no-store-api-key` for one-off usage."
                ),
            ) from exc
        typer.echo("Stored API key in secure credential storage.")

    return RuntimeConfigSources(cli=cli_values, secure=secure_values, env=env)
