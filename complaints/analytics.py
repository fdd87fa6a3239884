"""
Complaint statistics for the dashboards.

Read-only aggregation; nothing here writes to the database.
"""

from django.db.models import Count

from .models import Complaint, ComplaintStatus

SECONDS_PER_DAY = 86400


class ComplaintStatsService:

    @classmethod
    def get_stats(cls, department_id=None):
        """
        Aggregate complaint counts, optionally for one department.

        Returns:
            dict: total, in_progress, resolved, avg_resolution_days,
            by_status, by_category
        """
        queryset = Complaint.objects.all()
        if department_id is not None:
            queryset = queryset.filter(department_id=department_id)

        by_status = {value: 0 for value, _ in ComplaintStatus.CHOICES}
        for row in queryset.values('status').annotate(count=Count('id')).order_by():
            by_status[row['status']] = row['count']

        by_category = {
            row['category']: row['count']
            for row in queryset.values('category').annotate(count=Count('id')).order_by()
        }

        return {
            'department_id': str(department_id) if department_id else None,
            'total': sum(by_status.values()),
            'in_progress': sum(by_status[s] for s in ComplaintStatus.OPEN_STATES),
            'resolved': by_status[ComplaintStatus.RESOLVED],
            'avg_resolution_days': cls.average_resolution_days(queryset),
            'by_status': by_status,
            'by_category': by_category,
        }

    @staticmethod
    def average_resolution_days(queryset):
        """
        Mean of (resolved_at - created_at) in days over resolved
        complaints, rounded to one decimal. 0 when nothing qualifies.
        """
        rows = queryset.filter(
            status=ComplaintStatus.RESOLVED,
            resolved_at__isnull=False,
        ).values_list('created_at', 'resolved_at')

        durations = [
            (resolved_at - created_at).total_seconds() / SECONDS_PER_DAY
            for created_at, resolved_at in rows
        ]
        if not durations:
            return 0

        return round(sum(durations) / len(durations), 1)
