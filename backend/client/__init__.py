from .api_client import ApiError, ArtifactApiClient, ClientSession, UserInfo
from .state import AppState, AppStore, ArtifactForm, ArtifactView, NotLoggedInError, Scope

__all__ = [
    'ApiError',
    'ArtifactApiClient',
    'ClientSession',
    'UserInfo',
    'AppState',
    'AppStore',
    'ArtifactForm',
    'ArtifactView',
    'NotLoggedInError',
    'Scope',
]
