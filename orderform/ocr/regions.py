"""Fixed region layout of the carpet/rug sales-order form.

Every region is a rectangle expressed as fractions of the normalized image
size. The fractions are tuned to one physical form; a different form
needs new constants here, not configuration.
"""

from dataclasses import dataclass

from orderform.field_types import FieldType


@dataclass(frozen=True)
class RegionBox:
    """Axis-aligned rectangle in pixel coordinates."""

    x: int
    y: int
    width: int
    height: int


@dataclass(frozen=True)
class RegionSpec:
    """Layout constants and recognition type for one form field."""

    name: str
    label: str
    field_type: FieldType
    x: float
    y: float
    width: float
    height: float
    separator: str = ": "

    def line(self, value: str) -> str:
        """Render this field as a line of the labeled text block."""
        return f"{self.label}{self.separator}{value}"

    def box(self, image_width: int, image_height: int) -> RegionBox:
        """Scale the fractional layout to a pixel box."""
        return RegionBox(
            x=round(self.x * image_width),
            y=round(self.y * image_height),
            width=round(self.width * image_width),
            height=round(self.height * image_height),
        )


# Catalog order is also the line order of the labeled text block.
# fmt: off
REGION_SPECS: tuple[RegionSpec, ...] = (
    RegionSpec("invoice_number", "INVOICE # CR", FieldType.NUMERIC, 0.64, 0.01, 0.34, 0.09, separator=" "),
    RegionSpec("sold_to", "Sold to", FieldType.TEXT, 0.05, 0.16, 0.43, 0.13),
    RegionSpec("directions", "Directions", FieldType.TEXT, 0.52, 0.16, 0.43, 0.13),
    RegionSpec("email", "Customer Email", FieldType.EMAIL, 0.52, 0.275, 0.43, 0.05),
    RegionSpec("date", "Date", FieldType.DATE, 0.05, 0.315, 0.10, 0.055),
    RegionSpec("home_phone", "Home Phone", FieldType.PHONE, 0.15, 0.315, 0.18, 0.055),
    RegionSpec("cell_phone", "Cell Phone", FieldType.PHONE, 0.33, 0.315, 0.16, 0.055),
    RegionSpec("installation_date", "Installation Date", FieldType.DATE, 0.49, 0.315, 0.18, 0.055),
    RegionSpec("installed_by", "Installed By", FieldType.TEXT, 0.68, 0.315, 0.14, 0.055),
    RegionSpec("salesperson", "Salesperson", FieldType.TEXT, 0.82, 0.315, 0.14, 0.055),
    RegionSpec("manufacturer", "Manufacturer", FieldType.TEXT, 0.15, 0.365, 0.52, 0.045),
    RegionSpec("size", "Size", FieldType.TEXT, 0.15, 0.410, 0.52, 0.045),
    RegionSpec("style", "Style", FieldType.TEXT, 0.15, 0.455, 0.52, 0.045),
    RegionSpec("color", "Color", FieldType.TEXT, 0.15, 0.500, 0.52, 0.045),
    RegionSpec("pad", "Pad", FieldType.TEXT, 0.15, 0.545, 0.52, 0.045),
    RegionSpec("rug_pad", "Rug Pad", FieldType.TEXT, 0.15, 0.590, 0.52, 0.045),
    RegionSpec("unit_amount_block", "Unit/Amount Block", FieldType.NUMERIC, 0.67, 0.355, 0.30, 0.26),
    RegionSpec("totals_block", "Totals Block", FieldType.NUMERIC, 0.70, 0.695, 0.28, 0.255),
)
# fmt: on

REGIONS_BY_NAME: dict[str, RegionSpec] = {spec.name: spec for spec in REGION_SPECS}


def regions_for(width: int, height: int) -> dict[str, RegionBox]:
    """Compute every region's pixel box for an image of the given size.

    Args:
        width: Normalized image width.
        height: Normalized image height.

    Returns:
        Mapping of field name to box, in catalog order.
    """
    return {spec.name: spec.box(width, height) for spec in REGION_SPECS}


def field_type_of(name: str) -> FieldType:
    """Semantic type of a catalog field; unknown names read as text."""
    spec = REGIONS_BY_NAME.get(name)
    return spec.field_type if spec else FieldType.TEXT


def clamp_box(box: RegionBox, image_width: int, image_height: int) -> RegionBox:
    """Clamp a box so it lies inside the image and is at least 1x1."""
    x = min(max(box.x, 0), image_width - 1)
    y = min(max(box.y, 0), image_height - 1)
    width = min(max(box.width, 1), image_width - x)
    height = min(max(box.height, 1), image_height - y)
    return RegionBox(x=x, y=y, width=width, height=height)


def pad_box(
    box: RegionBox, padding: int, image_width: int, image_height: int
) -> RegionBox:
    """Grow a box by ``padding`` pixels on every side, staying in bounds."""
    x = max(0, box.x - padding)
    y = max(0, box.y - padding)
    width = min(image_width - x, box.width + padding * 2)
    height = min(image_height - y, box.height + padding * 2)
    return RegionBox(x=x, y=y, width=width, height=height)
