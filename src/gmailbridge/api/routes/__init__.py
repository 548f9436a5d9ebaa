# Route modules mounted by gmailbridge.api.mount_routers.
