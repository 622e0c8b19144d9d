from rest_framework import status
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from .capabilities import get_modules_for_role, resolve_role
from .serializers import DeviceRegistrationSerializer, MobileDeviceSerializer
from .services import MobileDeviceService, build_mobile_config


class MobileConfigView(APIView):
    """Public bootstrap config read by the app before login."""

    authentication_classes = []
    permission_classes = [AllowAny]

    def get(self, request):
        return Response(build_mobile_config())


class MobileCapabilitiesView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request):
        user = request.user
        profile = resolve_role(user.role)
        return Response({
            "userId": user.id,
            "role": user.role,
            "department": user.department,
            "modules": get_modules_for_role(user.role),
            "capabilities": profile.capabilities,
        })


class MobileDeviceView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request):
        return Response(MobileDeviceSerializer(request.user.mobile_devices.all(), many=True).data)

    def post(self, request):
        payload = DeviceRegistrationSerializer(data=request.data)
        payload.is_valid(raise_exception=True)
        device, created = MobileDeviceService.register(user=request.user, **payload.validated_data)
        return Response(
            MobileDeviceSerializer(device).data,
            status=status.HTTP_201_CREATED if created else status.HTTP_200_OK,
        )


class MobileDeviceDetailView(APIView):
    permission_classes = [IsAuthenticated]

    def delete(self, request, device_id):
        MobileDeviceService.unregister(user=request.user, device_id=device_id)
        return Response(status=status.HTTP_204_NO_CONTENT)
