from __future__ import annotations

from providers.base import MailboxProvider


class ProviderRegistry:
    """Registry of mailbox providers the scheduler polls.

    Provider names double as task names and log prefixes, so they must
    be unique.
    """

    def __init__(self) -> None:
        self._providers: dict[str, MailboxProvider] = {}

    def register(self, provider: MailboxProvider) -> None:
        if provider.name in self._providers:
            raise ValueError(f"Provider already registered: {provider.name}")
        self._providers[provider.name] = provider

    @property
    def providers(self) -> list[MailboxProvider]:
        return list(self._providers.values())
