from rest_framework import serializers

from .degrees import DegreeError, DegreePath, Term
from .models import DEFAULT_CHURCH, DEFAULT_LEVEL, Student


class StudentRecordSerializer(serializers.Serializer):
    """Validates the camelCase record shape used by the dashboard and the record store."""
    code = serializers.CharField(read_only=True)
    fullName = serializers.CharField(max_length=255)
    gender = serializers.ChoiceField(choices=Student.GENDER_CHOICES, default='Male')
    birthdate = serializers.DateField(required=False, allow_null=True)
    phoneNumber = serializers.CharField(max_length=30, required=False, allow_blank=True, default='')
    church = serializers.CharField(max_length=255, required=False, allow_blank=True, default=DEFAULT_CHURCH)
    level = serializers.CharField(max_length=100, required=False, allow_blank=True, default=DEFAULT_LEVEL)
    address = serializers.CharField(max_length=255, required=False, allow_blank=True, default='')
    active = serializers.BooleanField(default=False)
    admin = serializers.BooleanField(default=False)
    degree = serializers.DictField(read_only=True)

    def to_internal_value(self, data):
        values = super().to_internal_value(data)
        if values.get('birthdate'):
            values['birthdate'] = values['birthdate'].isoformat()
        elif 'birthdate' in values:
            values['birthdate'] = ''
        return values


class DegreeEditSerializer(serializers.Serializer):
    """``{"edits": {"degree.firstTerm.agbya": 5, ...}}``"""
    edits = serializers.DictField(child=serializers.JSONField(), allow_empty=False)

    def validate_edits(self, value):
        for path in value:
            try:
                DegreePath.parse(path)
            except DegreeError as e:
                raise serializers.ValidationError(str(e))
        return value


class BulkUploadSerializer(serializers.Serializer):
    file = serializers.FileField()


class DegreeUploadSerializer(BulkUploadSerializer):
    term = serializers.ChoiceField(choices=[term.value for term in Term])


class IdCardsSerializer(serializers.Serializer):
    codes = serializers.ListField(child=serializers.CharField(), allow_empty=False)
    time = serializers.CharField(required=False, allow_blank=True)
    saint = serializers.CharField(required=False, allow_blank=True, default='')
    location = serializers.CharField(required=False, allow_blank=True, default='')
