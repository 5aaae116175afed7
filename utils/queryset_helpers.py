from django.db.models import Q
from utils.validators import DateValidators


class FilterableQuerysetMixin:
    """
    Narrows a ViewSet queryset by exact-match query parameters.
    Subclasses list the allowed parameters in ``filter_fields``.
    """

    def get_queryset(self):
        qs = super().get_queryset()

        for field in getattr(self, "filter_fields", []):
            value = self.request.query_params.get(field)
            if value:
                qs = qs.filter(**{f"{field}__iexact": value})

        return qs


class UserSpecificQuerysetMixin:
    """
    Customers only see rows they own; admin and staff see everything.
    ``user_field`` names the ownership lookup (defaults to ``user``).
    """

    def get_queryset(self):
        qs = super().get_queryset()

        if self.request.user.is_staff:
            return qs

        user_field = getattr(self, "user_field", "user")
        return qs.filter(**{user_field: self.request.user})


class SearchableQuerysetMixin:
    """
    Free-text ``?search=`` over the lookups listed in ``search_fields``.
    """

    def get_queryset(self):
        qs = super().get_queryset()
        search_query = self.request.query_params.get("search")

        if search_query:
            search_fields = getattr(self, "search_fields", [])
            if search_fields:
                q_objects = Q()
                for field in search_fields:
                    q_objects |= Q(**{f"{field}__icontains": search_query})
                qs = qs.filter(q_objects)

        return qs


class DateRangeQuerysetMixin:
    """
    Restricts rows to ``?start_date=`` / ``?end_date=`` (inclusive, YYYY-MM-DD)
    applied to the datetime field named by ``date_field``.
    """

    def get_queryset(self):
        qs = super().get_queryset()
        date_field = getattr(self, "date_field", "created_at")

        start = DateValidators.parse_date(self.request.query_params.get("start_date"))
        end = DateValidators.parse_date(self.request.query_params.get("end_date"))
        if start:
            qs = qs.filter(**{f"{date_field}__date__gte": start})
        if end:
            qs = qs.filter(**{f"{date_field}__date__lte": end})

        return qs

