"""AdStory: turn product photos into a narrated, animated ad storyboard."""

__version__ = "1.0.0"
