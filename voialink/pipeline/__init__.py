from voialink.pipeline.create_video import create_video, is_local_source

__all__ = ["create_video", "is_local_source"]
