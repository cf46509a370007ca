from django import forms


class LoginForm(forms.Form):
    """Логин/пароль пользователя бэкенда (в обмен получаем токен)."""
    username = forms.CharField(label="Логин", max_length=150,
                               widget=forms.TextInput(attrs={"autofocus": True, "autocomplete": "username"}))
    password = forms.CharField(label="Пароль", strip=False,
                               widget=forms.PasswordInput(attrs={"autocomplete": "current-password"}))
