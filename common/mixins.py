# common/mixins.py
from rest_framework import status
from rest_framework.response import Response


class SuccessEnvelopeMixin:
    """
    Wrap plain viewset payloads as {"success": true, "<envelope_key>": ...}.
    Views that already build a {"success": ...} body are left alone.
    """
    envelope_key = "data"

    def finalize_response(self, request, response, *args, **kwargs):
        if isinstance(response, Response) and response.status_code < 400:
            data = response.data
            if not (isinstance(data, dict) and "success" in data):
                if response.status_code == status.HTTP_204_NO_CONTENT:
                    response.status_code = status.HTTP_200_OK
                    response.data = {"success": True, "message": "Deleted successfully"}
                else:
                    response.data = {"success": True, self.envelope_key: data}
        return super().finalize_response(request, response, *args, **kwargs)
