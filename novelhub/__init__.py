"""Novel platform content backend with background translation and title jobs."""
