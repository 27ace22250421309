def standardized_response(success=True, data=None, message=None, error=None, error_code=None):
    """
    Build the JSON envelope shared by every API view.

    {"success": bool, "message": str|None, "data": ..., "error": ..., "error_code": ...}
    `error` and `error_code` are only present on failures.
    """
    response = {
        'success': success,
        'message': message,
        'data': data,
    }
    if not success:
        response['error'] = error
        if error_code is not None:
            response['error_code'] = error_code
    return response
