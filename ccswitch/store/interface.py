from abc import ABC, abstractmethod

from ccswitch.apps.app_id import AppType
from ccswitch.errors import NotFoundError, ValidationError
from ccswitch.models import Provider, ProviderPatch


class IProviderStore(ABC):
    """Durable source of truth for providers and the per-app current pointer.

    Every mutating call is one transaction: it either commits fully or leaves
    the store exactly as it was.
    """

    @abstractmethod
    def create(self, provider: Provider) -> Provider:
        """Insert ``provider``; an empty id is generated, timestamps are set."""
        raise NotImplementedError

    @abstractmethod
    def get(self, provider_id: str) -> Provider:
        raise NotImplementedError

    @abstractmethod
    def find_by_name(self, app_type: AppType, name: str) -> Provider:
        raise NotImplementedError

    @abstractmethod
    def update(self, provider_id: str, patch: ProviderPatch) -> Provider:
        raise NotImplementedError

    @abstractmethod
    def delete(self, provider_id: str) -> Provider:
        """Remove a provider and any current pointer that references it."""
        raise NotImplementedError

    @abstractmethod
    def list(self, app_type: AppType | None = None) -> list[Provider]:
        raise NotImplementedError

    @abstractmethod
    def get_current(self, app_type: AppType) -> str | None:
        raise NotImplementedError

    @abstractmethod
    def set_current(self, app_type: AppType, provider_id: str) -> None:
        raise NotImplementedError

    @abstractmethod
    def clear_current(self, app_type: AppType) -> None:
        raise NotImplementedError

    @abstractmethod
    def close(self) -> None:
        raise NotImplementedError

    def exists(self, provider_id: str) -> bool:
        return any(item.id == provider_id for item in self.list())

    def count(self, app_type: AppType | None = None) -> int:
        return len(self.list(app_type))

    def current_provider(self, app_type: AppType) -> Provider | None:
        provider_id = self.get_current(app_type)
        return self.get(provider_id) if provider_id is not None else None

    def resolve(self, app_type: AppType, ref: str) -> Provider:
        """Look up a provider by id, exact name, case-insensitive name or prefix.

        A prefix that matches several names is rejected rather than guessed.
        """
        providers = self.list(app_type)
        for matcher in (
            lambda item: item.id == ref,
            lambda item: item.name == ref,
            lambda item: item.name.casefold() == ref.casefold(),
        ):
            matches = [item for item in providers if matcher(item)]
            if len(matches) == 1:
                return matches[0]

        needle = ref.casefold()
        matches = [
            item
            for item in providers
            if needle and item.name.casefold().startswith(needle)
        ]
        if len(matches) == 1:
            return matches[0]
        if len(matches) > 1:
            names = ", ".join(item.name for item in matches)
            raise ValidationError(
                f"Provider reference '{ref}' is ambiguous for {app_type.value}: {names}"
            )
        raise NotFoundError(f"{app_type.value} provider", ref)
