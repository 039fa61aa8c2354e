from fastapi import APIRouter, Depends, HTTPException, status
from app.database.supabase_client import get_supabase
from app.modules.maintenance import jobs
from app.core.dependencies import require_super_user
from supabase import Client
from typing import Dict
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"])

MAINTENANCE_TASKS = {
    "cleanup-empty-rooms": lambda supabase, dry_run: jobs.cleanup_empty_rooms(supabase, dry_run=dry_run),
    "cleanup-old-messages": lambda supabase, dry_run: jobs.cleanup_old_messages(supabase, dry_run=dry_run),
    "update-analytics": lambda supabase, dry_run: jobs.update_analytics(supabase, dry_run=dry_run),
}


@router.get("/maintenance")
async def list_maintenance_tasks(actor: Dict = Depends(require_super_user)):
    return {"tasks": sorted(MAINTENANCE_TASKS)}


@router.post("/maintenance/{task}")
async def run_maintenance_task(
    task: str,
    dry_run: bool = False,
    actor: Dict = Depends(require_super_user),
    supabase: Client = Depends(get_supabase)
):
    """Run a named maintenance job (super users only)"""
    runner = MAINTENANCE_TASKS.get(task)
    if runner is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Unknown maintenance task: {task}")
    logger.info(f"Maintenance task {task} requested by {actor['id']} (dry_run={dry_run})")
    try:
        result = runner(supabase, dry_run)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Maintenance task {task} failed: {e}")
        raise HTTPException(status_code=500, detail=f"Maintenance task failed: {e}")
    return {"task": task, "dry_run": dry_run, "result": result}
