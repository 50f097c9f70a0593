import base64, binascii, math, re

from .services.errors import ValidationError

QUARTER_DIOPTER = 0.25


def format_power(power: float | None) -> str:
    if power is None:
        return ""
    # avoid rendering "-0.00"
    if abs(power) < 0.005:
        return "0.00"
    return f"{power:+.2f}"


def format_rx(sphere: float, cylinder: float = 0.0, axis: float | None = None) -> str:
    text = format_power(sphere)
    if cylinder and axis:
        text += f" / {format_power(cylinder)} x {axis:g}"
    return text


def check_finite(**values) -> None:
    """Raise ValidationError if any named input is NaN or infinite."""
    for name, value in values.items():
        if value is not None and not math.isfinite(value):
            raise ValidationError(f"{name} must be a finite number (got {value}).")


def round_to_step(value: float, step: float = QUARTER_DIOPTER) -> float:
    """Round half-up to the nearest multiple of ``step`` (0.25 D by default)."""
    return math.floor(value / step + 0.5) * step


def perpendicular_axis(axis: float) -> float:
    return axis - 90 if axis + 90 > 180 else axis + 90


def is_valid_axis(axis: float | None) -> bool:
    return axis is not None and 0 < axis <= 180


DATA_URI_RX = re.compile(r"^data:(?P<mime>[\w.+-]+/[\w.+-]+);base64,(?P<data>[A-Za-z0-9+/=\s]+)$")


def parse_data_uri(uri: str) -> tuple[str, bytes]:
    """Split a ``data:<mime>;base64,<data>`` URI into its MIME type and raw bytes."""
    m = DATA_URI_RX.match(uri or "")
    if not m:
        raise ValidationError("Image must be a base64 data URI ('data:<mimetype>;base64,<encoded_data>').")
    try:
        data = base64.b64decode(m.group("data"), validate=False)
    except (binascii.Error, ValueError) as e:
        raise ValidationError(f"Image data is not valid base64: {e}")
    return m.group("mime"), data


def to_data_uri(mime: str, data: bytes) -> str:
    return f"data:{mime};base64,{base64.b64encode(data).decode('ascii')}"
