from rest_framework import serializers


class ApprovalRequesterSerializer(serializers.Serializer):
    id = serializers.IntegerField()
    name = serializers.CharField()
    role = serializers.CharField()


class ApprovalItemSerializer(serializers.Serializer):
    id = serializers.IntegerField()
    type = serializers.CharField()
    referenceNumber = serializers.CharField(allow_blank=True)
    title = serializers.CharField(allow_blank=True)
    status = serializers.CharField()
    requester = ApprovalRequesterSerializer(allow_null=True)
    amount = serializers.DecimalField(max_digits=20, decimal_places=2, allow_null=True)
    currency = serializers.CharField(allow_null=True)
    createdAt = serializers.DateTimeField()


class ApprovalActionSerializer(serializers.Serializer):
    comments = serializers.CharField(required=False, allow_blank=True, max_length=1000)


class ApprovalRejectSerializer(serializers.Serializer):
    reason = serializers.CharField(min_length=5, max_length=1000)
