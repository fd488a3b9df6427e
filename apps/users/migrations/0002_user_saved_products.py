from django.db import migrations, models


class Migration(migrations.Migration):

    dependencies = [
        ("shop", "0001_initial"),
        ("users", "0001_initial"),
    ]

    operations = [
        migrations.AddField(
            model_name="user",
            name="saved_products",
            field=models.ManyToManyField(blank=True, related_name="saved_by", to="shop.product"),
        ),
    ]
