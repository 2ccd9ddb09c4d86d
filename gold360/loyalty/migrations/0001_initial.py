# Generated manually
import django.core.validators
import django.db.models.deletion
from decimal import Decimal
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('customers', '0001_initial'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='LoyaltyProgram',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=200)),
                ('description', models.TextField(blank=True)),
                ('points_per_currency', models.DecimalField(decimal_places=4, default=Decimal('1.0'), max_digits=8, validators=[django.core.validators.MinValueValidator(Decimal('0'))])),
                ('minimum_points_for_redemption', models.PositiveIntegerField(default=100)),
                ('point_value_in_currency', models.DecimalField(decimal_places=4, default=Decimal('0.01'), max_digits=8, validators=[django.core.validators.MinValueValidator(Decimal('0'))])),
                ('expiry_months', models.PositiveIntegerField(default=12)),
                ('is_active', models.BooleanField(default=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'db_table': 'loyalty_programs',
                'ordering': ['-is_active', '-created_at'],
            },
        ),
        migrations.CreateModel(
            name='LoyaltyTransaction',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('points', models.IntegerField()),
                ('transaction_type', models.CharField(choices=[('earn', 'Earn'), ('redeem', 'Redeem'), ('expire', 'Expire'), ('adjust', 'Adjust')], max_length=10)),
                ('reference_type', models.CharField(choices=[('order', 'Order'), ('promotion', 'Promotion'), ('system', 'System'), ('support', 'Support')], default='system', max_length=20)),
                ('reference_id', models.CharField(blank=True, max_length=100, null=True)),
                ('description', models.CharField(blank=True, max_length=255)),
                ('expiry_date', models.DateTimeField(blank=True, null=True)),
                ('is_expired', models.BooleanField(default=False)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('created_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='loyalty_transactions', to=settings.AUTH_USER_MODEL)),
                ('customer', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='loyalty_transactions', to='customers.customer')),
            ],
            options={
                'db_table': 'loyalty_transactions',
                'ordering': ['-created_at', '-id'],
                'indexes': [models.Index(fields=['transaction_type', 'is_expired', 'expiry_date'], name='loyalty_expiry_idx')],
            },
        ),
    ]
