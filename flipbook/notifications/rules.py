from flipbook.notifications.events import FlipbookEvent
from flipbook.notifications.channels import Channel


NOTIFICATION_RULES = {

    FlipbookEvent.FLIPBOOK_CREATED: {
        Channel.OWNER_EMAIL: True,
        Channel.ADMIN_EMAIL: True,
    },

    FlipbookEvent.ACCESS_EXTENDED: {
        Channel.OWNER_EMAIL: True,
    },

    FlipbookEvent.ACCESS_MADE_PERMANENT: {
        Channel.OWNER_EMAIL: True,
    },

    FlipbookEvent.FLIPBOOK_ACTIVATED: {
        Channel.OWNER_EMAIL: True,
    },

}
