"""Advanced Reports API Schemas

This module defines the Pydantic models for the advanced operations report.
It includes schemas for:

1. Revenue by vendor and by delivery area
2. Peak hours and orders by day of week
3. Customer retention cohorts and top customers
4. Delivery time analysis
5. Cancellation analysis
6. The response envelopes returned by the API

Fields are declared in snake_case and serialised in camelCase, which is the
shape the dashboard frontend consumes."""
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from typing import List
import datetime


class ReportModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# 1. Revenue
class VendorRevenue(ReportModel):
    vendor_id: str
    vendor_name: str
    total_revenue: float
    total_orders: int
    average_order_value: int
    completed_orders: int
    cancelled_orders: int
    cancellation_rate: float

class AreaRevenue(ReportModel):
    area: str
    pincode: str
    total_revenue: float
    total_orders: int
    average_order_value: int

# 2. Demand
class HourlyOrders(ReportModel):
    hour: int
    hour_label: str
    order_count: int
    revenue: int

class DayOfWeekOrders(ReportModel):
    day: str
    day_index: int
    order_count: int
    revenue: int

# 3. Customer retention
class CustomersByOrderCount(ReportModel):
    one_order: int
    two_to_five: int
    six_to_ten: int
    more_than_ten: int

class TopCustomer(ReportModel):
    customer_id: str
    customer_name: str
    total_orders: int
    total_spent: int
    last_order_date: str

class CustomerRetention(ReportModel):
    total_customers: int
    new_customers: int
    returning_customers: int
    retention_rate: float
    average_orders_per_customer: float
    customers_by_order_count: CustomersByOrderCount
    top_customers: List[TopCustomer]

# 4. Delivery time
class VendorDeliveryTime(ReportModel):
    vendor_id: str
    vendor_name: str
    average_time: int
    total_deliveries: int

class AreaDeliveryTime(ReportModel):
    area: str
    pincode: str
    average_time: int
    total_deliveries: int

class DeliveryTimeRange(ReportModel):
    range: str
    count: int
    percentage: float

class DeliveryTimeAnalysis(ReportModel):
    average_delivery_time: int
    fastest_delivery: int
    slowest_delivery: int
    delivery_time_by_vendor: List[VendorDeliveryTime]
    delivery_time_by_area: List[AreaDeliveryTime]
    delivery_time_distribution: List[DeliveryTimeRange]

# 5. Cancellations
class CancellationReason(ReportModel):
    reason: str
    count: int
    percentage: float

class VendorCancellations(ReportModel):
    vendor_id: str
    vendor_name: str
    cancellations: int
    total_orders: int
    cancellation_rate: float

class HourlyCancellations(ReportModel):
    hour: int
    hour_label: str
    count: int

class CancellationTrendPoint(ReportModel):
    date: str
    cancellations: int
    total_orders: int
    rate: float

class CancellationAnalysis(ReportModel):
    total_cancellations: int
    cancellation_rate: float
    cancellations_by_reason: List[CancellationReason]
    cancellations_by_vendor: List[VendorCancellations]
    cancellations_by_hour: List[HourlyCancellations]
    cancellation_trend: List[CancellationTrendPoint]

# The report
class DateRange(ReportModel):
    start: datetime.date
    end: datetime.date

class AdvancedReport(ReportModel):
    revenue_by_vendor: List[VendorRevenue]
    revenue_by_area: List[AreaRevenue]
    peak_hours: List[HourlyOrders]
    orders_by_day_of_week: List[DayOfWeekOrders]
    customer_retention: CustomerRetention
    delivery_time_analysis: DeliveryTimeAnalysis
    cancellation_analysis: CancellationAnalysis
    date_range: DateRange

# 6. Envelopes
class AdvancedReportResponse(ReportModel):
    success: bool = True
    data: AdvancedReport

class ReportErrorResponse(ReportModel):
    success: bool = False
    error: str
