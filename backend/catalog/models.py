from django.db import models


class Product(models.Model):
    name = models.CharField(max_length=255, db_index=True)
    description = models.TextField(blank=True, default='')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["name"]
        verbose_name = "Product"
        verbose_name_plural = "Products"

    def __str__(self):
        return self.name


class Size(models.Model):
    product = models.ForeignKey(Product, on_delete=models.CASCADE, related_name='sizes')
    code = models.CharField(max_length=16)
    text = models.CharField(max_length=64, blank=True, default='')
    quantity = models.PositiveIntegerField(default=0)

    class Meta:
        ordering = ["product", "code"]
        verbose_name = "Size"
        verbose_name_plural = "Sizes"
        unique_together = ('product', 'code')

    def __str__(self):
        return f"{self.product.name} ({self.code})"
