from django.http import JsonResponse


def page_not_found(request, exception=None):
    return JsonResponse(
        {
            "status": "error",
            "message": f"Can't find {request.path} on this server!",
        },
        status=404,
    )


def server_error(request):
    return JsonResponse(
        {"status": "error", "message": "Something went very wrong!"},
        status=500,
    )
