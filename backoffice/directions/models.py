from django.db import models


class CrmDirection(models.Model):
    """Business line (furniture, windows & doors, ...) that contracts and measurements belong to"""
    name = models.CharField(max_length=200)
    slug = models.SlugField(max_length=100, unique=True)
    description = models.TextField(blank=True, null=True)
    is_active = models.BooleanField(default=True)
    sort_order = models.IntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'crm_directions'
        ordering = ['sort_order', 'name']
