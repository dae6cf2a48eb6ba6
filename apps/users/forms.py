from django.contrib.auth.forms import BaseUserCreationForm, UserChangeForm

from .models import User


class UserCreationForm(BaseUserCreationForm):
    class Meta:
        model = User
        fields = ('email', 'name')


class UserUpdateForm(UserChangeForm):
    class Meta:
        model = User
        fields = ('email', 'name', 'image')
