from flipbook.models.user import User
from flipbook.models.admin import Admin
from flipbook.models.flipbook import Flipbook, PaymentStatus
from flipbook.models.slider_image import SliderImage

# add ALL models here
