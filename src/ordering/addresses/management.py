"""Address book management: commands and handler."""

from protean import handle
from protean.exceptions import ObjectNotFoundError
from protean.fields import Boolean, Identifier, String
from protean.utils.globals import current_domain

from ordering.addresses.address import AddressLabel, SavedAddress
from ordering.domain import ordering


@ordering.command(part_of="SavedAddress")
class AddAddress:
    customer_id = Identifier(required=True)
    label = String(max_length=20, choices=AddressLabel, default=AddressLabel.HOME.value)
    full_name = String(required=True, max_length=100)
    phone = String(required=True, max_length=20)
    address_line1 = String(required=True, max_length=255)
    address_line2 = String(max_length=255)
    city = String(required=True, max_length=100)
    state = String(required=True, max_length=100)
    postal_code = String(required=True, max_length=20)
    country = String(max_length=100, default="Nepal")
    is_default = Boolean(default=False)


@ordering.command(part_of="SavedAddress")
class RemoveAddress:
    customer_id = Identifier(required=True)
    address_id = Identifier(required=True)


@ordering.command_handler(part_of=SavedAddress)
class ManageAddressesHandler:
    @handle(AddAddress)
    def add_address(self, command):
        repo = current_domain.repository_for(SavedAddress)
        existing = repo.for_customer(command.customer_id)

        # A customer always has exactly one default once they have addresses
        is_default = bool(command.is_default) or not existing
        if is_default:
            for other in existing:
                if other.is_default:
                    other.is_default = False
                    repo.add(other)

        address = SavedAddress.create(
            customer_id=command.customer_id,
            is_default=is_default,
            label=command.label,
            full_name=command.full_name,
            phone=command.phone,
            address_line1=command.address_line1,
            address_line2=command.address_line2,
            city=command.city,
            state=command.state,
            postal_code=command.postal_code,
            country=command.country or "Nepal",
        )
        repo.add(address)
        return str(address.id)

    @handle(RemoveAddress)
    def remove_address(self, command):
        repo = current_domain.repository_for(SavedAddress)
        address = repo.find_for_owner(command.address_id, command.customer_id)
        if address is None:
            raise ObjectNotFoundError("Address not found")

        repo._dao.delete(address)

        if address.is_default:
            remaining = repo.for_customer(command.customer_id)
            if remaining:
                remaining[0].is_default = True
                repo.add(remaining[0])
