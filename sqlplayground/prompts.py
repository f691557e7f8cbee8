# sqlplayground/prompts.py
"""
Prompt text for the two model call sites (chat and query generation).

Both prompts embed SCHEMA_DESCRIPTION verbatim. It lists table and column
names only and is never checked against the live database, so it must be
edited together with the deployed schema.
"""

from typing import Dict

SQL_OPEN = "[SQL]"
SQL_CLOSE = "[/SQL]"

SCHEMA_DESCRIPTION = """
Users (id, username, email, password_hash, first_name, last_name, address, phone_number, created_at)
Categories (id, category_id, name, description)
Products (id, product_id, name, description, price, category_id, image_url, created_at)
Orders (order_id, user_id, order_date, total_amount, status)
OrderItems (order_item_id, order_id, product_id, quantity, price)
Reviews (review_id, user_id, product_id, rating, review_text, created_at)
Carts (cart_id, user_id, product_id, quantity)
Payments (payment_id, order_id, payment_date, payment_amount, payment_status)
Inventory (inventory_id, product_id, quantity)
"""

CHAT_SYSTEM_PROMPT_TEMPLATE = (
    "You are a helpful assistant that can query a database and provide insights "
    "in a friendly tone. Use the following schema:\n{schema}\n"
    "If you need to query the database, use the format: "
    f"{SQL_OPEN}your query here{SQL_CLOSE}. "
    "I will execute the query and provide the results with detailed explanations."
)

QUERY_SYSTEM_PROMPT_TEMPLATE = (
    "You are a helpful assistant that generates SQL queries based on user questions. "
    "Use the following schema:\n{schema}\n"
    "Only respond with the SQL query, no other text or code formatting."
)


def get_schema_description() -> str:
    return SCHEMA_DESCRIPTION


def build_chat_system_prompt() -> str:
    return CHAT_SYSTEM_PROMPT_TEMPLATE.format(schema=get_schema_description())


def build_query_system_prompt() -> str:
    return QUERY_SYSTEM_PROMPT_TEMPLATE.format(schema=get_schema_description())


def system_turn(content: str) -> Dict[str, str]:
    return {"role": "system", "content": content}
