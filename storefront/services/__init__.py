# Services module
from storefront.services.auth_service import AuthService
from storefront.services.category_service import CategoryService
from storefront.services.product_service import ProductService
from storefront.services.order_service import OrderService
from storefront.services.wishlist_service import WishlistService
from storefront.services.wishlist_notifier import WishlistNotifier, NotificationOutcome, NotificationStatus
from storefront.services.settings_service import SettingsService
from storefront.services.checkout_service import CheckoutService
from storefront.services.payment_service import PaymentService
from storefront.services.contact_service import ContactService
from storefront.services.upload_service import UploadService
from storefront.services.email_service import EmailService, get_email_service
