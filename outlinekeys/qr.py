from typing import List, Optional, Tuple

import qrcode


def _matrix(data: str, border: int) -> List[List[bool]]:
    qr = qrcode.QRCode(border=border, error_correction=qrcode.constants.ERROR_CORRECT_L)
    qr.add_data(data)
    qr.make(fit=True)
    return qr.get_matrix()


def _render_double(matrix: List[List[bool]]) -> str:
    # Two module rows per text line using half blocks, so the code stays square.
    rows = list(matrix)
    if len(rows) % 2:
        rows.append([False] * len(rows[0]))
    lines = []
    for top, bottom in zip(rows[::2], rows[1::2]):
        line = []
        for upper, lower in zip(top, bottom):
            if upper and lower:
                line.append("█")
            elif upper:
                line.append("▀")
            elif lower:
                line.append("▄")
            else:
                line.append(" ")
        lines.append("".join(line))
    return "\n".join(lines)


def _render_compact(matrix: List[List[bool]]) -> str:
    return "\n".join("".join("█" if cell else " " for cell in row) for row in matrix)


def generate_qr_ascii(data: str, console_width: int = 80) -> Tuple[str, int, Optional[str]]:
    """
    Renders `data` as a terminal QR code that fits in `console_width`.

    "double" packs two module rows per line (border of 2 modules) and is
    preferred; "compact" is one row per line with a 1-module border.
    Returns (text, width, mode); mode is None and text an error message when
    neither fits.
    """
    matrix = _matrix(data, border=2)
    double_width = len(matrix[0])
    if double_width <= console_width - 10:
        return _render_double(matrix), double_width, "double"

    matrix = _matrix(data, border=1)
    compact_width = len(matrix[0])
    if compact_width <= console_width - 2:
        return _render_compact(matrix), compact_width, "compact"

    return f"Terminal too narrow for QR code ({compact_width} columns needed)", 0, None
