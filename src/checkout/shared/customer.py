"""CustomerDetails value object and the address rules shared by both delivery paths."""

import re

from pydantic import BaseModel, ConfigDict

# Fields that must be filled for the purchaser's own (single destination) delivery
DELIVERY_REQUIRED_FIELDS = ("name", "phone", "street", "city", "state", "postal_code")

# Fields that must be filled before a dropship recipient can get a shipment group
RECIPIENT_REQUIRED_FIELDS = ("name", "email", "street", "city", "state", "postal_code")

_EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


class CustomerDetails(BaseModel):
    """Recipient identity and address.

    ``city`` and ``state`` are only ever filled from a postal code lookup.
    """

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    name: str = ""
    email: str = ""
    phone: str = ""
    street: str = ""
    landmark: str = ""
    city: str = ""
    state: str = ""
    postal_code: str = ""

    def formatted_address(self) -> str:
        """Three line address block: name/phone, street/landmark, city/state/postal code."""
        first = ", ".join(part for part in (self.name, self.phone) if part)
        second = ", ".join(part for part in (self.street, self.landmark) if part)
        place = ", ".join(part for part in (self.city, self.state) if part)
        third = " - ".join(part for part in (place, self.postal_code) if part)
        return "\n".join((first, second, third))


def missing_fields(details: CustomerDetails | None, required: tuple[str, ...], postal_code_length: int = 6) -> dict:
    """Return ``{field: [message]}`` for every required field that is empty or malformed."""
    if details is None:
        return {field: ["This field is required"] for field in required}

    errors: dict[str, list[str]] = {}
    for field in required:
        if not getattr(details, field):
            errors[field] = ["This field is required"]

    postal_code = details.postal_code
    if "postal_code" in required and postal_code:
        if not (postal_code.isdigit() and len(postal_code) == postal_code_length):
            errors["postal_code"] = [f"Postal code must be exactly {postal_code_length} digits"]

    if "email" in required and details.email and not _EMAIL_PATTERN.match(details.email):
        errors["email"] = [f"Invalid email address: {details.email!r}"]

    return errors
