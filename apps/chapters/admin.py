from django.contrib import admin
from .models import Chapter

@admin.register(Chapter)
class ChapterAdmin(admin.ModelAdmin):
    list_display = ('slug', 'name', 'contact_email', 'stripe_customer_id', 'created_at')
    search_fields = ('slug', 'name', 'contact_email')
    readonly_fields = ('join_code', 'created_at', 'updated_at')
