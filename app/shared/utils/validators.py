# -*- coding: utf-8 -*-
"""
backend/app/shared/utils/validators.py

Validadores comunes para Jemputan.

Incluye:
- Validación de teléfono (formato malasio, con o sin prefijo +60)
- Normalización de teléfono a forma canónica (llave de rate limiting)

Autor: Jemputan
Fecha: 2026-02-05
"""

import re
from typing import Optional

# Separadores que los usuarios escriben y no cambian el número
_PHONE_SEPARATORS = re.compile(r"[\s\-\(\)]")
_PHONE_PATTERN = re.compile(r"^(\+?60)?[0-9]{9,11}$")


def validate_phone(phone: str) -> bool:
    """
    Valida formato de teléfono.
    Permite: dígitos, prefijo opcional +60/60, espacios, guiones y paréntesis.

    Args:
        phone: String de teléfono a validar

    Returns:
        True si el formato es válido, False en caso contrario
    """
    if not phone or not isinstance(phone, str):
        return False

    return bool(_PHONE_PATTERN.match(_PHONE_SEPARATORS.sub("", phone.strip())))


def normalize_phone(phone: Optional[str]) -> Optional[str]:
    """
    Forma canónica de un teléfono: solo dígitos con código de país.

    "012-345 6789", "+60 12 345 6789" y "60123456789" producen la misma
    llave, de modo que variar el formato no evade el límite por teléfono.

    Returns:
        Dígitos canónicos, o None si el valor no es un teléfono válido.
    """
    if not validate_phone(phone or ""):
        return None

    digits = _PHONE_SEPARATORS.sub("", phone.strip()).lstrip("+")
    if digits.startswith("0"):
        # Número local (01x...) -> 601x...
        digits = "6" + digits
    elif not digits.startswith("60"):
        digits = "60" + digits
    return digits


__all__ = ["validate_phone", "normalize_phone"]
