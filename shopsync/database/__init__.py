# Database Package
