import django_filters
from .models import ContentDocument


class ContentDocumentFilter(django_filters.FilterSet):
    term = django_filters.NumberFilter(field_name='term')
    yearNumber = django_filters.NumberFilter(field_name='year_number')
    ageLevel = django_filters.NumberFilter(method='filter_age_level')

    class Meta:
        model = ContentDocument
        fields = ['term', 'yearNumber', 'ageLevel']

    def filter_age_level(self, queryset, name, value):
        # JSON containment lookups are not available on every database backend
        ids = [doc.pk for doc in queryset if int(value) in (doc.age_levels or [])]
        return queryset.filter(pk__in=ids)
