# routes/admin_routes.py
import logging

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse

from models.schemas import AddUsersRequest, PopulateRequest
from services import admin_ops
from services.identity import AuthClient, CallerIdentity, get_auth_client, require_admin, require_policy_manager
from services.rest_store import get_store

logging.basicConfig(level=logging.INFO)

router = APIRouter(prefix="/admin", tags=["admin"])

INTERNAL_ERROR = {"error": "An internal error occurred"}


def _run(name: str, fn, *args, **kwargs):
    try:
        result = fn(*args, **kwargs)
    except HTTPException as e:
        logging.error(f"Admin operation {name} failed ({e.status_code}): {e.detail}")
        return JSONResponse(status_code=500, content=INTERNAL_ERROR)
    except Exception:
        logging.exception(f"Admin operation {name} failed")
        return JSONResponse(status_code=500, content=INTERNAL_ERROR)
    return {"success": True, **result}


@router.post("/add-users-to-group")
def add_users_to_group(req: AddUsersRequest, caller: CallerIdentity = Depends(require_policy_manager),
                       store=Depends(get_store), auth: AuthClient = Depends(get_auth_client)):
    logging.info(f"{caller.user_id} adding {req.number_of_users} users to {req.group_name}")
    return _run("add-users-to-group", admin_ops.add_users_to_group, store, auth,
                group_name=req.group_name, number_of_users=req.number_of_users)


@router.post("/cleanup-users")
def cleanup_users(caller: CallerIdentity = Depends(require_admin), store=Depends(get_store),
                  auth: AuthClient = Depends(get_auth_client)):
    logging.info(f"{caller.user_id} requested user cleanup")
    return _run("cleanup-users", admin_ops.cleanup_users, store, auth, keep_user_id=caller.user_id)


@router.post("/populate-test-data")
def populate_test_data(req: PopulateRequest = PopulateRequest(),
                       caller: CallerIdentity = Depends(require_policy_manager),
                       store=Depends(get_store), auth: AuthClient = Depends(get_auth_client)):
    return _run("populate-test-data", admin_ops.populate_test_data, store, auth,
                policy_count=req.policy_count)


@router.post("/upload-sample-policies")
def upload_sample_policies(caller: CallerIdentity = Depends(require_policy_manager),
                           store=Depends(get_store)):
    return _run("upload-sample-policies", admin_ops.upload_sample_policies, store)
