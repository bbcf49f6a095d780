# -*- coding: utf-8 -*-
"""
backend/app/modules/audit/__init__.py

Ledger de auditoría append-only. Todos los componentes del motor de ciclo
de vida escriben aquí; nada en este subsistema modifica ni borra registros.

Autor: Jemputan
Fecha: 2026-02-04
"""
