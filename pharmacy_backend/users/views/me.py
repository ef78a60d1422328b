from drf_spectacular.utils import extend_schema
from rest_framework import serializers
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from permissions.roles import capabilities_for


class MeSerializer(serializers.Serializer):
    id = serializers.UUIDField()
    email = serializers.EmailField()
    display_name = serializers.CharField()
    role = serializers.CharField()
    pharmacy_id = serializers.UUIDField()
    capabilities = serializers.ListField(child=serializers.CharField())


class MeView(APIView):
    permission_classes = [IsAuthenticated]
    serializer_class = MeSerializer

    @extend_schema(
        responses={200: MeSerializer},
        description="Current user profile with the pharmacy account and role capabilities.",
    )
    def get(self, request):
        user = request.user
        return Response(
            {
                "success": True,
                "data": {
                    "id": user.id,
                    "email": user.email,
                    "display_name": user.display_name,
                    "role": user.role,
                    "pharmacy_id": user.pharmacy_account.id,
                    "capabilities": sorted(capabilities_for(user)),
                },
            }
        )
