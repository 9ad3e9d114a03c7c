"""
Sales report, growth comparison and time series.
"""
from decimal import Decimal

from django.db.models import Count, Sum
from django.db.models.functions import TruncDate, TruncWeek, TruncMonth

from app.utils import to_money
from sales.models import Sale
from ..utils.date_utils import get_previous_range
from .base import BaseReportBuilder

GROWTH_THRESHOLD = Decimal('5')

TRUNC_FUNCTIONS = {
    'day': TruncDate,
    'week': TruncWeek,
    'month': TruncMonth,
}


def calculate_growth(current, previous):
    """
    Compare two values.

    Returns:
        {'current', 'previous', 'value', 'percentage', 'trend'} where value is
        the absolute change and trend is up/down beyond +/-5%, else stable
    """
    current = Decimal(str(current or 0))
    previous = Decimal(str(previous or 0))
    change = current - previous
    percentage = (change / previous * 100) if previous > 0 else Decimal('0')
    percentage = percentage.quantize(Decimal('0.01'))

    if percentage > GROWTH_THRESHOLD:
        trend = 'up'
    elif percentage < -GROWTH_THRESHOLD:
        trend = 'down'
    else:
        trend = 'stable'

    return {
        'current': current,
        'previous': previous,
        'value': change,
        'percentage': percentage,
        'trend': trend,
    }


def generate_time_series(queryset, group_by='day', date_field='created_at', value_field='total_amount'):
    """
    Sum and count a queryset per day, week (starting Monday) or month.

    Returns:
        [{'date': 'YYYY-MM-DD', 'value': Decimal, 'count': int}, ...] oldest first;
        monthly buckets use 'YYYY-MM'
    """
    trunc = TRUNC_FUNCTIONS.get(group_by, TruncDate)
    rows = (
        queryset.annotate(bucket=trunc(date_field))
        .values('bucket')
        .annotate(value=Sum(value_field), count=Count('id'))
        .order_by('bucket')
    )

    series = []
    for row in rows:
        bucket = row['bucket']
        if hasattr(bucket, 'date'):
            bucket = bucket.date()
        label = bucket.strftime('%Y-%m') if group_by == 'month' else bucket.isoformat()
        series.append({'date': label, 'value': to_money(row['value']), 'count': row['count']})
    return series


class SalesReportBuilder(BaseReportBuilder):
    """Completed sales in the range; cancelled sales are excluded."""
    title = 'Sales Report'

    def get_queryset(self, start=None, end=None):
        queryset = Sale.objects.filter(status=Sale.STATUS_COMPLETED)
        start = start or self.start
        end = end or self.end
        if start:
            queryset = queryset.filter(created_at__date__gte=start)
        if end:
            queryset = queryset.filter(created_at__date__lte=end)

        if self.filters.get('agent'):
            queryset = queryset.filter(agent_id=self.filters['agent'])
        if self.filters.get('sale_type'):
            queryset = queryset.filter(sale_type=self.filters['sale_type'])
        if self.filters.get('payment_method'):
            queryset = queryset.filter(payment_method=self.filters['payment_method'])
        return queryset

    def build_summary(self):
        queryset = self.get_queryset()
        totals = queryset.aggregate(
            count=Count('id'),
            amount=Sum('total_amount'),
            commissions=Sum('agent_commission'),
            profit=Sum('total_profit'),
            company_share=Sum('company_share'),
            cost=Sum('total_purchase_cost'),
        )
        count = totals['count'] or 0
        total_amount = to_money(totals['amount'])

        by_type = {
            row['sale_type']: row
            for row in queryset.values('sale_type').annotate(count=Count('id'), amount=Sum('total_amount'))
        }
        company = by_type.get(Sale.TYPE_COMPANY, {})
        agent = by_type.get(Sale.TYPE_AGENT, {})

        top = (
            queryset.filter(sale_type=Sale.TYPE_AGENT)
            .values('agent_id', 'agent__name')
            .annotate(amount=Sum('total_amount'), count=Count('id'))
            .order_by('-amount')
            .first()
        )

        previous_amount = Decimal('0.00')
        if self.start and self.end:
            previous_start, previous_end = get_previous_range(self.start, self.end, self.period)
            previous_amount = to_money(
                self.get_queryset(previous_start, previous_end).aggregate(amount=Sum('total_amount'))['amount']
            )

        summary = {
            'total_sales': count,
            'total_amount': total_amount,
            'total_commissions': to_money(totals['commissions']),
            'average_order_value': to_money(total_amount / count) if count else Decimal('0.00'),
            'company_sales_count': company.get('count', 0),
            'company_sales_amount': to_money(company.get('amount')),
            'agent_sales_count': agent.get('count', 0),
            'agent_sales_amount': to_money(agent.get('amount')),
            'top_agent': {
                'agent_id': str(top['agent_id']),
                'name': top['agent__name'],
                'total_amount': to_money(top['amount']),
                'sales_count': top['count'],
            } if top else None,
            'growth': calculate_growth(total_amount, previous_amount),
        }
        if self.show_profits:
            summary.update({
                'total_profit': to_money(totals['profit']),
                'company_share': to_money(totals['company_share']),
                'total_purchase_cost': to_money(totals['cost']),
            })
        return summary

    def get_headers(self):
        headers = [
            ('invoice_number', 'Invoice'),
            ('date', 'Date'),
            ('sale_type', 'Type'),
            ('agent', 'Agent'),
            ('customer', 'Customer'),
            ('payment_method', 'Payment'),
            ('total_amount', 'Amount'),
            ('agent_commission', 'Commission'),
        ]
        if self.show_profits:
            headers += [('total_profit', 'Profit'), ('company_share', 'Company Share')]
        return headers

    def build_rows(self):
        rows = []
        for sale in self.get_queryset().select_related('agent', 'customer').order_by('-created_at'):
            row = {
                'invoice_number': sale.invoice_number,
                'date': sale.created_at.date().isoformat(),
                'sale_type': sale.sale_type,
                'agent': sale.agent.name if sale.agent_id else '',
                'customer': sale.customer.name,
                'payment_method': sale.payment_method,
                'total_amount': sale.total_amount,
                'agent_commission': sale.agent_commission,
            }
            if self.show_profits:
                row['total_profit'] = sale.total_profit
                row['company_share'] = sale.company_share
            rows.append(row)
        return rows

    def time_series(self, group_by='day'):
        return generate_time_series(self.get_queryset(), group_by=group_by)
