from django.utils import timezone
from rest_framework import serializers
from .models import AttendanceEntry

DATE_TIME_FORMAT = '%Y-%m-%d %H:%M:%S'


def format_date_time(value):
    if timezone.is_aware(value):
        value = timezone.localtime(value)
    return value.strftime(DATE_TIME_FORMAT)


class AttendanceEntrySerializer(serializers.ModelSerializer):
    dateTime = serializers.SerializerMethodField()

    class Meta:
        model = AttendanceEntry
        fields = ['id', 'code', 'dateTime', 'status']

    def get_dateTime(self, obj):
        return format_date_time(obj.date_time)

