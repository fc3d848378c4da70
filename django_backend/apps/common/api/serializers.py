from rest_framework import serializers


class EmailTestSerializer(serializers.Serializer):
    email = serializers.EmailField()
