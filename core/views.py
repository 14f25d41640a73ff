# core/views.py

from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework import status
from rest_framework.permissions import AllowAny

from .models import SiteSettings
from .serializers import SiteSettingsSerializer


class SiteSettingsAPIView(APIView):
    permission_classes = [AllowAny]

    def get(self, request):
        settings = SiteSettings.objects.first()
        if not settings:
            return Response({"error": "Die Website-Einstellungen sind noch nicht konfiguriert."}, status=status.HTTP_404_NOT_FOUND)
        serializer = SiteSettingsSerializer(settings)
        return Response(serializer.data, status=status.HTTP_200_OK)
