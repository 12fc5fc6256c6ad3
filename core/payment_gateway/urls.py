from django.urls import path
from .views import CreatePayAidOrderView, PayAidCallbackView

app_name = "payment_gateway"

urlpatterns = [
    path("payaid/orders/", CreatePayAidOrderView.as_view(), name="payaid-create-order"),
    path("payaid/callback/", PayAidCallbackView.as_view(), name="payaid-callback"),
]
