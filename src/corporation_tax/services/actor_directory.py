"""Identity and naming lookups over the character and corporation registries."""

from typing import Protocol

from corporation_tax.domain.value_objects import ActorKind, ActorRef
from corporation_tax.exceptions import NotFoundError
from corporation_tax.repositories.interfaces import (
    CharacterRepository,
    CorporationRepository,
    UserRepository,
)


class IdentityLookup(Protocol):
    """Protocol for deciding whether an id is an individual or an organization."""

    def resolve(self, actor_id: int) -> ActorRef:
        """Return the tagged identity for ``actor_id``.

        Returns:
            ActorRef with kind INDIVIDUAL, ORGANIZATION, or UNKNOWN
        """
        ...


class ActorDirectory:
    """Resolves party ids against stored characters and corporations.

    The character registry is consulted first; an id found there is never
    reported as an organization.
    """

    def __init__(
        self,
        character_repo: CharacterRepository,
        corporation_repo: CorporationRepository,
        user_repo: UserRepository | None = None,
    ) -> None:
        self._character_repo = character_repo
        self._corporation_repo = corporation_repo
        self._user_repo = user_repo

    def resolve(self, actor_id: int) -> ActorRef:
        if self._character_repo.get(actor_id) is not None:
            return ActorRef.individual(actor_id)
        if self._corporation_repo.get(actor_id) is not None:
            return ActorRef.organization(actor_id)
        return ActorRef.unknown(actor_id)

    def character_name(self, character_id: int) -> str | None:
        character = self._character_repo.get(character_id)
        return character.name if character else None

    def corporation_name(self, corporation_id: int) -> str | None:
        corporation = self._corporation_repo.get(corporation_id)
        return corporation.name if corporation else None

    def name_of(self, actor: ActorRef) -> str | None:
        if actor.kind is ActorKind.INDIVIDUAL:
            return self.character_name(actor.actor_id)
        if actor.kind is ActorKind.ORGANIZATION:
            return self.corporation_name(actor.actor_id)
        return None

    def user_display_name(self, user_id: int) -> str:
        """Main character name, falling back to the user's group nickname.

        Raises:
            NotFoundError: If the user has neither.
        """
        main = self._character_repo.main_for_user(user_id)
        if main is not None:
            return main.name

        if self._user_repo is not None:
            user = self._user_repo.get(user_id)
            if user is not None and user.group_nickname:
                return user.group_nickname

        raise NotFoundError("User", user_id)
