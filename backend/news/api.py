import logging

from rest_framework import permissions, status
from rest_framework.response import Response
from rest_framework.views import APIView

from .services import FeedError, NewsFeed

logger = logging.getLogger(__name__)


class NewsFeedView(APIView):
    permission_classes = [permissions.AllowAny]
    news_feed: NewsFeed | None = None

    def get(self, request, *args, **kwargs):
        feed = self.news_feed or NewsFeed()
        try:
            items = feed.items()
        except FeedError as exc:
            logger.warning("News feed unavailable: %s", exc)
            return Response([], status=status.HTTP_500_INTERNAL_SERVER_ERROR)
        return Response(items)
