from __future__ import annotations

import base64

# Placeholder 1x1 pixel until the Quilt logo is bundled.
ICON_PNG = base64.b64decode(
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mNkYPhfDwAChwGA60e6kgAAAABJRU5ErkJggg=="
)


def icon_data_uri(data: bytes = ICON_PNG) -> str:
    return "data:image/png;base64," + base64.b64encode(data).decode("ascii")
