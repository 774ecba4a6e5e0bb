# Overview: JSON response envelope helpers shared by every blueprint.

from .results import ServiceResult


def success_response(data=None, status: int = 200):
    return {"success": True, "data": data}, status


def error_response(error, status: int = 400):
    return {"success": False, "error": error}, status


def from_result(result: ServiceResult):
    """Map a ServiceResult to the {success, data} | {success: false, error} envelope."""
    if result.success:
        return success_response(result.data, result.status)
    return error_response(result.error, result.status)
