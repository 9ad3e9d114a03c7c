import uuid

from django.contrib.auth.models import AbstractBaseUser, BaseUserManager, PermissionsMixin
from django.db import models


class UserManager(BaseUserManager):
    """Custom user manager for UUID primary keys"""
    def create_user(self, email, password=None, **extra_fields):
        if not email:
            raise ValueError('The Email field must be set')
        email = self.normalize_email(email)
        user = self.model(email=email, **extra_fields)
        user.set_password(password)
        user.save(using=self._db)
        return user

    def create_superuser(self, email, password=None, **extra_fields):
        extra_fields.setdefault('is_staff', True)
        extra_fields.setdefault('is_superuser', True)
        extra_fields.setdefault('is_active', True)
        extra_fields.setdefault('role', User.ROLE_SUPER_ADMIN)

        if extra_fields.get('is_staff') is not True:
            raise ValueError('Superuser must have is_staff=True.')
        if extra_fields.get('is_superuser') is not True:
            raise ValueError('Superuser must have is_superuser=True.')

        return self.create_user(email, password, **extra_fields)


class User(AbstractBaseUser, PermissionsMixin):
    """Custom user model with UUID primary key and a single business role"""
    ROLE_SUPER_ADMIN = 'super_admin'
    ROLE_ADMIN_MANAGER = 'admin_manager'
    ROLE_SALES_EMPLOYEE = 'sales_employee'
    # Legacy roles kept for accounts created before the role overhaul
    ROLE_ADMIN = 'admin'
    ROLE_AGENT = 'agent'
    ROLE_SHOWROOM_USER = 'showroom_user'

    ROLE_CHOICES = [
        (ROLE_SUPER_ADMIN, 'Super Admin'),
        (ROLE_ADMIN_MANAGER, 'Admin Manager'),
        (ROLE_SALES_EMPLOYEE, 'Sales Employee'),
        (ROLE_ADMIN, 'Admin (legacy)'),
        (ROLE_AGENT, 'Agent'),
        (ROLE_SHOWROOM_USER, 'Showroom User (legacy)'),
    ]

    ADMIN_ROLES = (ROLE_SUPER_ADMIN, ROLE_ADMIN, ROLE_ADMIN_MANAGER)

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=255)
    email = models.EmailField(unique=True)
    phone = models.CharField(max_length=20, blank=True, null=True)
    role = models.CharField(max_length=20, choices=ROLE_CHOICES, default=ROLE_SALES_EMPLOYEE, db_index=True)
    is_active = models.BooleanField(default=True)
    is_staff = models.BooleanField(default=False)
    is_superuser = models.BooleanField(default=False)
    created_by = models.ForeignKey(
        'self',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='created_users'
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = UserManager()

    USERNAME_FIELD = 'email'
    REQUIRED_FIELDS = ['name']

    class Meta:
        db_table = 'users'
        ordering = ['name']
        indexes = [
            models.Index(fields=['role', 'is_active'], name='users_role_active_idx'),
        ]

    def __str__(self):
        return f"{self.name} ({self.email})"

    @property
    def is_super_admin(self):
        return self.role == self.ROLE_SUPER_ADMIN

    @property
    def is_agent(self):
        return self.role == self.ROLE_AGENT

    @property
    def is_admin_or_higher(self):
        return self.role in self.ADMIN_ROLES

    @property
    def agent(self):
        """The Agent profile linked to this user, or None."""
        if not self.is_agent:
            return None
        from agents.models import Agent
        return Agent.objects.filter(user=self).select_related('warehouse').first()


class AuditLog(models.Model):
    """Audit trail for user management and ledger-affecting operations"""
    ACTION_CHOICES = [
        ('CREATE', 'Create'),
        ('UPDATE', 'Update'),
        ('DELETE', 'Delete'),
        ('LOGIN', 'Login'),
        ('SALE', 'Sale'),
        ('TRANSFER', 'Transfer'),
        ('PAYMENT', 'Payment'),
        ('SETTLEMENT', 'Settlement'),
        ('CANCEL', 'Cancel'),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True)
    action = models.CharField(max_length=20, choices=ACTION_CHOICES)
    model_name = models.CharField(max_length=100)
    object_id = models.UUIDField(null=True, blank=True)
    changes = models.JSONField(default=dict, blank=True)
    ip_address = models.GenericIPAddressField(null=True, blank=True)
    timestamp = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'audit_logs'
        ordering = ['-timestamp']
        indexes = [
            models.Index(fields=['user', 'timestamp'], name='audit_user_ts_idx'),
            models.Index(fields=['model_name', 'object_id'], name='audit_model_obj_idx'),
            models.Index(fields=['action', 'timestamp'], name='audit_action_ts_idx'),
        ]

    def __str__(self):
        return f"{self.user} - {self.action} - {self.model_name} - {self.timestamp}"

    @classmethod
    def log(cls, user, action, model_name, object_id=None, changes=None, ip_address=None):
        """Create an audit entry; anonymous users are recorded as None."""
        if user is not None and not getattr(user, 'is_authenticated', False):
            user = None
        return cls.objects.create(
            user=user,
            action=action,
            model_name=model_name,
            object_id=object_id,
            changes=changes or {},
            ip_address=ip_address,
        )
