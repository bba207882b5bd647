# Generated manually to create the messages table
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='ContactMessage',
            fields=[
                ('id', models.BigAutoField(primary_key=True, serialize=False)),
                ('first_name', models.CharField(help_text="Submitter's first name (escaped)", max_length=120)),
                ('last_name', models.CharField(help_text="Submitter's last name (escaped)", max_length=120)),
                ('email', models.EmailField(help_text="Submitter's email address", max_length=254)),
                ('subject', models.CharField(blank=True, help_text='Optional subject line (escaped)', max_length=600, null=True)),
                ('message', models.TextField(help_text='Message body (escaped)')),
                ('ip_address', models.CharField(blank=True, help_text='Source address of the submission (audit only)', max_length=45, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True, help_text='When the message was submitted')),
            ],
            options={
                'verbose_name': 'Contact Message',
                'verbose_name_plural': 'Contact Messages',
                'db_table': 'messages',
                'ordering': ['-created_at', '-id'],
                'indexes': [
                    models.Index(fields=['-created_at'], name='messages_created_at_desc_idx'),
                    models.Index(fields=['email'], name='messages_email_idx'),
                ],
            },
        ),
    ]
