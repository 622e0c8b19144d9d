from django.urls import path

from .views import CurrentUserProfileView, UserLookupView, UserRoleAssignmentView

urlpatterns = [
    path("me/", CurrentUserProfileView.as_view(), name="user-profile"),
    path("lookup/", UserLookupView.as_view(), name="user-lookup"),
    path("<int:user_id>/role/", UserRoleAssignmentView.as_view(), name="user-role-assign"),
]
