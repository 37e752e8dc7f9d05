"""
Pipeline de sincronización one-way: API de Stortinget -> base de datos local.

Se dispara al iniciar la aplicación (con un pequeño delay), desde el endpoint
`POST /api/v1/sync/run` o como job vía `scripts/stortinget_sync.py`.

Objetivos de diseño:
- Idempotencia: UPSERT por `stortinget_id`, se puede ejecutar N veces sin duplicar.
- Aislamiento: una fuente caída no afecta a las demás (settle-all).
- Continue-on-error: un registro inválido no aborta el lote.
- Gating: como máximo una ronda por intervalo, controlada por un watermark.
"""
