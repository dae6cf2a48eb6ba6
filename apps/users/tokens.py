from rest_framework_simplejwt.serializers import TokenObtainPairSerializer

from .sessions import membership_claims


class ChapterTokenObtainPairSerializer(TokenObtainPairSerializer):
    """Adds the user's name, email and chapter memberships to issued tokens."""

    @classmethod
    def get_token(cls, user):
        token = super().get_token(user)
        token['name'] = user.name
        token['email'] = user.email
        token['memberships'] = membership_claims(user)
        return token


def issue_tokens(user):
    """Return ``(access, refresh)`` tokens for ``user``."""
    refresh = ChapterTokenObtainPairSerializer.get_token(user)
    return refresh.access_token, refresh
