from django.contrib import admin
from django.contrib.auth.admin import UserAdmin

from store.models import StoreRole
from .models import CustomUser


class StoreRoleInline(admin.TabularInline):
    model = StoreRole
    extra = 0
    autocomplete_fields = ('store',)
    fields = ('store', 'role')


class CustomUserAdmin(UserAdmin):
    model = CustomUser
    inlines = [StoreRoleInline]

    list_display = ('email', 'full_name', 'role', 'store_role_count', 'is_active', 'created_at')
    list_filter = ('role', 'is_active', 'is_staff')
    readonly_fields = ('last_login', 'created_at', 'updated_at')

    fieldsets = (
        (None, {'fields': ('email', 'password', 'full_name')}),
        ('Catalog access', {
            'fields': ('role', 'is_active'),
            'description': "OWNER manages every store; EDITOR and VIEWER need a store role below.",
        }),
        ('Django admin', {
            'classes': ('collapse',),
            'fields': ('is_staff', 'is_superuser'),
        }),
        ('Dates', {'fields': ('last_login', 'created_at', 'updated_at')}),
    )

    add_fieldsets = (
        (None, {
            'classes': ('wide',),
            'fields': ('email', 'full_name', 'role', 'password1', 'password2'),
        }),
    )

    ordering = ('email',)
    search_fields = ('email', 'full_name')

    def get_queryset(self, request):
        return super().get_queryset(request).prefetch_related('store_roles')

    @admin.display(description='Stores')
    def store_role_count(self, obj):
        return len(obj.store_roles.all())


admin.site.register(CustomUser, CustomUserAdmin)
