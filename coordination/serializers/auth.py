from rest_framework import serializers


class LoginSerializer(serializers.Serializer):
    """Staff credentials; usernames are matched case-sensitively after trimming."""
    username = serializers.CharField(max_length=150, trim_whitespace=True)
    password = serializers.CharField(max_length=128, trim_whitespace=False, style={'input_type': 'password'})
