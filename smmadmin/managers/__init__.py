"""Manager modules for smmadmin."""

from smmadmin.managers.database import DatabaseManager
from smmadmin.managers.token_store import GlobalTokenStore
from smmadmin.managers.refresh_locks import RefreshLockRegistry
from smmadmin.managers.token_refresh import TokenRefreshCoordinator
from smmadmin.managers.background import BackgroundTaskRunner
from smmadmin.managers.delivery import PostDelivery
from smmadmin.managers.dispatch import ScheduledDispatcher
from smmadmin.managers.generation import ContentGenerator
from smmadmin.managers.brands import BrandManager
from smmadmin.managers.documents import DocumentManager
from smmadmin.managers.posts import PostManager
from smmadmin.managers.users import UserManager
