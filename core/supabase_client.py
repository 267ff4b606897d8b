# core/supabase_client.py

from typing import Optional

from supabase import create_client, Client

from core.config import settings
from core.logging_config import logger
from core.store import Collections


# ============================================================
# Supabase Client Factory (ALWAYS service role)
# ============================================================

def get_supabase_client() -> Optional[Client]:
    """
    Creates a Supabase client using the SERVICE ROLE KEY.
    REQUIRED for:
        - auth.admin.get_user_by_id
        - auth.admin.update_user_by_id (role claims, bans)
        - full read/write on all tables
    """
    try:
        supabase_url = settings.SUPABASE_URL
        supabase_key = settings.SUPABASE_SERVICE_ROLE_KEY  # MUST be service-role

        if not supabase_url or not supabase_key:
            logger.error("Missing Supabase credentials")
            logger.error(f"   URL: {supabase_url}")
            logger.error(f"   SERVICE ROLE KEY: {'SET' if supabase_key else 'MISSING'}")
            return None

        return create_client(supabase_url, supabase_key)

    except Exception as e:
        logger.error(f"Supabase Init Error: {e}", exc_info=True)
        return None


# ============================================================
# Ping Supabase for health checks
# ============================================================

HEALTH_CHECK_TABLES = (
    Collections.users,
    Collections.clients,
    Collections.jobs,
    Collections.activity_logs,
)


def ping_supabase() -> dict:
    """
    Simple connectivity check against the main tables.
    Auth endpoints are not touched.
    """
    client = get_supabase_client()
    if client is None:
        return {"service": "Supabase", "status": "not_configured"}

    results = {}
    healthy = True
    for table in HEALTH_CHECK_TABLES:
        try:
            res = client.table(table.value).select("id").limit(1).execute()
            results[table.value] = {"status": "ok", "rows_found": len(res.data or [])}
        except Exception as err:
            healthy = False
            logger.warning(f"Health check failed for {table.value}: {err}")
            results[table.value] = {"status": "error"}

    return {
        "service": "Supabase",
        "status": "ok" if healthy else "degraded",
        "tables": results,
    }
