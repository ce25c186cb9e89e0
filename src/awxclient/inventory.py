"""Inventory registration: makes sure a host is known to AWX before jobs run.

Which inventory a host belongs in depends on its OS release and host type.
That mapping is held in a :class:`GroupRuleTable` supplied by the caller, so
new inventories can be added without touching the registration logic.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass
from types import MappingProxyType

from awxclient.awx import HOST_DESCRIPTION, AwxClient, AwxClientError
from awxclient.errors import ConfigurationError, CredentialsError, TransportError
from awxclient.logging import get_logger
from awxclient.models import BuildContext, InventoryHost
from awxclient.types import HostType

logger = get_logger(__name__)


@dataclass(frozen=True)
class GroupRule:
    """How a build context qualifies for an inventory.

    Attributes:
        label: Display name of the inventory, used in log messages.
        host_type: Host type the inventory holds.
        release_prefix: Prefix the desired release must start with (e.g. "8."),
            or None when the inventory accepts any release.
    """

    label: str
    host_type: HostType
    release_prefix: str | None = None

    def applies_to(self, context: BuildContext) -> bool:
        if context.host_type != self.host_type:
            return False
        if self.release_prefix is None:
            return True
        return context.desired_release.startswith(self.release_prefix)


class GroupRuleTable(Mapping[int, GroupRule]):
    """Immutable lookup table of inventory id -> group rule."""

    def __init__(self, rules: Mapping[int, GroupRule] | Iterable[tuple[int, GroupRule]]) -> None:
        self._rules: Mapping[int, GroupRule] = MappingProxyType(dict(rules))

    def __getitem__(self, inventory_id: int) -> GroupRule:
        return self._rules[inventory_id]

    def __iter__(self) -> Iterator[int]:
        return iter(self._rules)

    def __len__(self) -> int:
        return len(self._rules)

    def label_for(self, inventory_id: int) -> str:
        """Display name of an inventory, or a placeholder for unknown inventories."""
        rule = self._rules.get(inventory_id)
        return rule.label if rule else f"unknown inventory {inventory_id}"

    def resolve(self, context: BuildContext) -> GroupRule:
        """Find the one rule that applies to a build context.

        The rule is selected by the context's host type and release alone and
        must then belong to the context's inventory.

        Raises:
            ConfigurationError: If no rule or more than one rule applies, or
                the applicable rule belongs to another inventory.
        """
        matches = [
            (inventory_id, rule)
            for inventory_id, rule in self._rules.items()
            if rule.applies_to(context)
        ]
        if not matches:
            raise ConfigurationError(
                f"No inventory accepts {context.host_type} hosts running release "
                f"{context.desired_release}"
            )
        if len(matches) > 1:
            labels = ", ".join(rule.label for _, rule in matches)
            raise ConfigurationError(
                f"{context.host_type} hosts running release {context.desired_release} "
                f"match several inventories: {labels}"
            )

        inventory_id, rule = matches[0]
        if inventory_id != context.inventory_id:
            raise ConfigurationError(
                f"{context.host_type} hosts running release {context.desired_release} belong "
                f"in inventory {inventory_id} ({rule.label}), not {context.inventory_id} "
                f"({context.inventory_name})"
            )
        return rule


DEFAULT_GROUP_RULES = GroupRuleTable(
    {
        44: GroupRule(label="Foreman_Hosts", host_type=HostType.INTERNAL, release_prefix="7."),
        392: GroupRule(label="Rocky Foreman", host_type=HostType.INTERNAL, release_prefix="8."),
        513: GroupRule(label="Midtier-Baremetal", host_type=HostType.MIDTIER),
        516: GroupRule(label="Edge-Baremetal", host_type=HostType.EDGE),
    }
)


def _wrap_client_error(action: str, e: AwxClientError) -> TransportError | CredentialsError:
    if e.is_auth_error:
        return CredentialsError(
            f"Access denied while {action}: ensure the AWX credentials are correct "
            f"and have access to the inventory ({e})"
        )
    return TransportError(f"{action}: {e}")


class InventoryRegistrar:
    """Registers hosts in their AWX inventory and facility group."""

    def __init__(self, client: AwxClient, rules: GroupRuleTable = DEFAULT_GROUP_RULES) -> None:
        """Initialize the registrar.

        Args:
            client: AWX client.
            rules: Inventory id -> group rule table.
        """
        self.client = client
        self.rules = rules

    def ensure(self, context: BuildContext) -> InventoryHost:
        """Make sure the host exists in AWX, creating it if needed.

        A host that is already registered is left untouched. A new host is
        created in the context's inventory and added to its facility group.

        Args:
            context: The build context.

        Returns:
            The registered host.

        Raises:
            ConfigurationError: If the context resolves to no single group
                rule or the facility group does not exist.
            CredentialsError: If AWX rejects the credentials.
            TransportError: If AWX cannot be reached.
        """
        rule = self.rules.resolve(context)
        fqdn = context.fqdn
        log = logger.with_context(fqdn=fqdn)

        existing = self.find_host(fqdn)
        if existing is not None:
            log.info(
                "Found %s in inventory %s",
                fqdn,
                self.rules.label_for(existing.inventory_id),
            )
            return existing

        log.info("Couldn't find %s in any inventory, attempting to create it...", fqdn)
        try:
            created = self.client.create_host(
                fqdn, context.inventory_id, description=HOST_DESCRIPTION, enabled=True
            )
        except AwxClientError as e:
            raise _wrap_client_error(f"creating host {fqdn}", e) from e

        host_id = created.get("id")
        if not host_id:
            # Creation responses normally carry the id; fall back to a lookup
            found = self.find_host(fqdn)
            host_id = found.host_id if found else None
        if not host_id:
            raise TransportError(f"AWX did not return an id for newly created host {fqdn}")

        group_id = self.resolve_group_id(context)
        try:
            self.client.associate_group(host_id, group_id)
        except AwxClientError as e:
            if e.is_client_error:
                raise ConfigurationError(self._missing_group_message(context)) from e
            raise _wrap_client_error(f"adding {fqdn} to group {context.facility}", e) from e

        log.info(
            "Successfully created %s and added it to the %s group in %s",
            fqdn,
            context.facility,
            rule.label,
        )
        return InventoryHost(
            name=fqdn,
            inventory_id=context.inventory_id,
            group_id=group_id,
            exists=True,
            host_id=host_id,
        )

    def find_host(self, fqdn: str) -> InventoryHost | None:
        """Look a host up by exact name.

        Raises:
            CredentialsError: If AWX rejects the credentials.
            TransportError: If AWX cannot be reached.
        """
        try:
            records = self.client.list_hosts(fqdn)
        except AwxClientError as e:
            raise _wrap_client_error(f"looking up host {fqdn}", e) from e

        for record in records:
            if record.get("name") == fqdn:
                return InventoryHost.from_api_response(record)
        return None

    def resolve_group_id(self, context: BuildContext) -> int:
        """Find the id of the context's facility group in its inventory.

        Groups with the facility name may exist in several inventories; the
        first one that belongs to the context's inventory wins, in the order
        AWX returned them.

        Raises:
            ConfigurationError: If the group does not exist in the inventory.
            CredentialsError: If AWX rejects the credentials.
            TransportError: If AWX cannot be reached.
        """
        try:
            groups = self.client.list_groups(context.facility)
        except AwxClientError as e:
            if e.is_client_error:
                raise ConfigurationError(self._missing_group_message(context)) from e
            raise _wrap_client_error(f"looking up group {context.facility}", e) from e

        if context.inventory_id in self.rules:
            for group in groups:
                if group.get("inventory") == context.inventory_id and group.get("id"):
                    return int(group["id"])

        raise ConfigurationError(self._missing_group_message(context))

    @staticmethod
    def _missing_group_message(context: BuildContext) -> str:
        return f"Ensure {context.facility} group exists in the {context.inventory_name} inventory"


__all__ = [
    "DEFAULT_GROUP_RULES",
    "GroupRule",
    "GroupRuleTable",
    "InventoryRegistrar",
]
