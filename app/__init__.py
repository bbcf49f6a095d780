# -*- coding: utf-8 -*-
"""
backend/app/__init__.py

Paquete principal del backend de Jemputan (motor de ciclo de vida de
eventos y estado de pago).

Los módulos internos se importan como 'app.*' con la carpeta 'backend'
en PYTHONPATH (o con `pip install -e .`).

Autor: Jemputan
Fecha: 2026-02-03
"""

# Fin del archivo backend/app/__init__.py
