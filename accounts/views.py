from rest_framework_simplejwt.views import TokenObtainPairView

from .serializers import CustomTokenObtainPairSerializer


class CustomTokenObtainPairView(TokenObtainPairView):
    """Issue JWT tokens with the user's role embedded in the payload"""
    serializer_class = CustomTokenObtainPairSerializer
