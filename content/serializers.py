from rest_framework import serializers
from .models import ContentDocument

HYMN_REQUIRED_FIELDS = ['title', 'copticContent', 'copticArabicContent', 'term', 'yearNumber']


class ContentDocumentSerializer(serializers.ModelSerializer):
    arabicContent = serializers.CharField(source='arabic_content', required=False, allow_blank=True)
    copticContent = serializers.CharField(source='coptic_content', required=False, allow_blank=True)
    copticArabicContent = serializers.CharField(source='coptic_arabic_content', required=False, allow_blank=True)
    yearNumber = serializers.IntegerField(source='year_number', required=False, allow_null=True, min_value=0)
    term = serializers.IntegerField(required=False, allow_null=True, min_value=0)
    ageLevel = serializers.ListField(source='age_levels', child=serializers.IntegerField(min_value=0),
                                     required=False)
    createdAt = serializers.DateTimeField(source='created_at', read_only=True)
    updatedAt = serializers.DateTimeField(source='updated_at', read_only=True)

    class Meta:
        model = ContentDocument
        fields = ['id', 'collection', 'title', 'content', 'arabicContent', 'copticContent',
                  'copticArabicContent', 'term', 'yearNumber', 'ageLevel', 'audio', 'createdAt', 'updatedAt']
        read_only_fields = ['id', 'collection']

    def validate_ageLevel(self, value):
        return sorted(set(value))

    def validate(self, data):
        if self.context.get('collection') != ContentDocument.HYMNS:
            return data

        # partial updates are checked against the stored values
        def current(field):
            source = self.fields[field].source
            if source in data:
                return data[source]
            if self.instance is not None:
                return getattr(self.instance, source)
            return None

        missing = [f for f in HYMN_REQUIRED_FIELDS if current(f) in (None, '')]
        if not current('ageLevel'):
            missing.append('ageLevel')
        if missing:
            raise serializers.ValidationError(
                {field: "This field is required for hymns." for field in missing}
            )
        return data
