# -*- coding: utf-8 -*-
"""
backend/app/modules/abuse/__init__.py

Detección de abandono de pagos y freno de creación de eventos
(AccountFlag, un registro por usuario).
"""
