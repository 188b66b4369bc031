from django.conf import settings
from django.conf.urls.static import static
from django.contrib import admin
from django.urls import include, path
from rest_framework.routers import DefaultRouter
from rest_framework_simplejwt.views import TokenRefreshView

from accounts.api import ChangePasswordView, LoginView, MeView, PushTokenView, RegisterView
from bookings.api import BookingViewSet
from clubs.api import ClubLogoView, ClubViewSet
from games.api import GameViewSet
from news.api import NewsFeedView
from news.services import NewsFeed
from notifications.api import NotificationViewSet
from payments.api import CreatePaymentIntentView, StripeWebhookView

router = DefaultRouter()
router.register(r"clubs", ClubViewSet, basename="club")
router.register(r"games", GameViewSet, basename="game")
router.register(r"bookings", BookingViewSet, basename="booking")
router.register(r"notifications", NotificationViewSet, basename="notification")

urlpatterns = [
    path("admin/", admin.site.urls),
    path("api/auth/register/", RegisterView.as_view(), name="auth-register"),
    path("api/auth/login/", LoginView.as_view(), name="auth-login"),
    path("api/auth/refresh/", TokenRefreshView.as_view(), name="auth-refresh"),
    path(
        "api/auth/change-password/",
        ChangePasswordView.as_view(),
        name="auth-change-password",
    ),
    path("api/auth/me/", MeView.as_view(), name="auth-me"),
    path("api/auth/push-token/", PushTokenView.as_view(), name="auth-push-token"),
    path("api/", include(router.urls)),
    path(
        "api/clubs/<int:club_id>/logo/",
        ClubLogoView.as_view(),
        name="club-logo",
    ),
    path(
        "api/functions/create-payment-intent/",
        CreatePaymentIntentView.as_view(),
        name="create-payment-intent",
    ),
    path("api/webhooks/stripe/", StripeWebhookView.as_view(), name="stripe-webhook"),
    path("api/news/", NewsFeedView.as_view(news_feed=NewsFeed()), name="news-feed"),
]

if settings.DEBUG:
    urlpatterns += static(settings.MEDIA_URL, document_root=settings.MEDIA_ROOT)
