from .session import is_signed_in


def backend_session(request):
    """Признак входа и имя пользователя для шапки сайта."""
    return {
        "signed_in": is_signed_in(request),
        "backend_username": request.session.get("backend_username", ""),
    }
