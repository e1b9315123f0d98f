"""SocialHub service package."""
