# sqlplayground/query_catalog.py
"""Named example queries against the e-commerce schema (PostgreSQL dialect)."""

from typing import Dict, List, Optional


def _q(name: str, query: str) -> Dict[str, str]:
    return {"name": name, "query": query.strip()}


PREDEFINED_QUERIES: List[Dict[str, str]] = [
    _q("All Users", """
SELECT *
FROM Users
"""),
    _q("All Products", """
SELECT *
FROM Products
"""),
    _q("User Count", """
SELECT COUNT(*) AS total_users
FROM Users
"""),
    _q("Top 5 Expensive Products", """
SELECT name, price
FROM Products
ORDER BY price DESC
LIMIT 5
"""),
    _q("Recent Orders", """
SELECT o.order_id, u.username, o.order_date, o.total_amount
FROM Orders o
JOIN Users u ON o.user_id = u.id
ORDER BY o.order_date DESC
"""),
    _q("Product Categories with Products", """
SELECT
  c.name AS category_name,
  COUNT(DISTINCT p.product_id) AS product_count,
  STRING_AGG(DISTINCT p.name, ', ') AS products
FROM Categories c
LEFT JOIN Products p ON c.category_id = p.category_id
GROUP BY c.name
ORDER BY product_count DESC, c.name
"""),
    _q("Users with Most Orders", """
SELECT u.username, COUNT(o.order_id) AS order_count
FROM Users u
LEFT JOIN Orders o ON u.id = o.user_id
GROUP BY u.id, u.username
ORDER BY order_count DESC
LIMIT 5
"""),
    _q("Average Order Value", """
SELECT AVG(total_amount) AS avg_order_value
FROM Orders
"""),
    _q("Products with Low Inventory", """
SELECT p.name, i.quantity
FROM Products p
JOIN Inventory i ON p.product_id = i.product_id
WHERE i.quantity < 10
ORDER BY i.quantity ASC
"""),
    _q("Top Rated Products", """
SELECT p.name, COALESCE(AVG(r.rating), 0) AS avg_rating, COUNT(r.review_id) AS review_count
FROM Products p
LEFT JOIN Reviews r ON p.product_id = r.product_id
GROUP BY p.product_id, p.name
HAVING COUNT(r.review_id) > 5
ORDER BY avg_rating DESC
LIMIT 10
"""),
    _q("Monthly Sales", """
SELECT DATE_TRUNC('month', order_date) AS month, SUM(total_amount) AS total_sales
FROM Orders
GROUP BY DATE_TRUNC('month', order_date)
ORDER BY month DESC
LIMIT 12
"""),
    _q("Users with Abandoned Carts", """
SELECT u.username, COUNT(c.cart_id) AS items_in_cart
FROM Users u
JOIN Carts c ON u.id = c.user_id
LEFT JOIN Orders o ON u.id = o.user_id
WHERE o.order_id IS NULL
GROUP BY u.id, u.username
HAVING COUNT(c.cart_id) > 0
ORDER BY items_in_cart DESC
"""),
    _q("Product Sales Ranking", """
SELECT p.name, SUM(oi.quantity) AS total_sold
FROM Products p
JOIN OrderItems oi ON p.product_id = oi.product_id
GROUP BY p.product_id, p.name
ORDER BY total_sold DESC
LIMIT 10
"""),
    _q("Users with Highest Total Spend", """
SELECT u.username, SUM(o.total_amount) AS total_spend
FROM Users u
JOIN Orders o ON u.id = o.user_id
GROUP BY u.id, u.username
ORDER BY total_spend DESC
"""),
    _q("Products Never Ordered", """
SELECT DISTINCT p.name
FROM Products p
LEFT JOIN OrderItems oi ON p.product_id = oi.product_id
WHERE oi.order_item_id IS NULL
"""),
    _q("Category Sales Performance", """
SELECT c.name AS category, SUM(oi.quantity * oi.price) AS total_sales
FROM Categories c
JOIN Products p ON c.category_id = p.category_id
JOIN OrderItems oi ON p.product_id = oi.product_id
GROUP BY c.category_id, c.name
ORDER BY total_sales DESC
"""),
    _q("User Registration Trend", """
SELECT DATE_TRUNC('month', created_at) AS month, COUNT(*) AS new_users
FROM Users
GROUP BY DATE_TRUNC('month', created_at)
ORDER BY month DESC
LIMIT 12
"""),
    _q("Orders with Payment Issues", """
SELECT o.order_id, u.username, o.total_amount, p.payment_status
FROM Orders o
JOIN Users u ON o.user_id = u.id
JOIN Payments p ON o.order_id = p.order_id
WHERE p.payment_status != 'Completed'
ORDER BY o.order_date DESC
"""),
    _q("Customer Lifetime Value", """
WITH customer_orders AS (
  SELECT user_id, SUM(total_amount) AS total_spend,
         MIN(order_date) AS first_order_date,
         MAX(order_date) AS last_order_date,
         COUNT(*) AS order_count
  FROM Orders
  GROUP BY user_id
)
SELECT u.username,
       co.total_spend,
       co.order_count,
       co.total_spend / NULLIF(EXTRACT(YEAR FROM AGE(co.last_order_date, co.first_order_date)), 0) AS yearly_value
FROM Users u
JOIN customer_orders co ON u.id = co.user_id
ORDER BY yearly_value DESC
"""),
    _q("Sales Funnel Analysis", """
WITH funnel_stages AS (
  SELECT
    COUNT(DISTINCT u.id) AS total_users,
    COUNT(DISTINCT c.user_id) AS users_with_cart,
    COUNT(DISTINCT o.user_id) AS users_with_orders,
    COUNT(DISTINCT CASE WHEN o.status = 'Delivered' THEN o.user_id END) AS users_with_completed_orders
  FROM Users u
  LEFT JOIN Carts c ON u.id = c.user_id
  LEFT JOIN Orders o ON u.id = o.user_id
)
SELECT
  total_users,
  users_with_cart,
  users_with_orders,
  users_with_completed_orders,
  ROUND(users_with_cart::NUMERIC / NULLIF(total_users, 0) * 100, 2) AS cart_conversion_rate,
  ROUND(users_with_orders::NUMERIC / NULLIF(users_with_cart, 0) * 100, 2) AS order_conversion_rate
FROM funnel_stages
"""),
]


def get_query(name: str) -> Optional[Dict[str, str]]:
    for q in PREDEFINED_QUERIES:
        if q["name"].lower() == name.lower():
            return q
    return None
